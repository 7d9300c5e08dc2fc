import os
import tempfile

# 1. Set required environment variables before config is imported
os.environ["ADMIN_PASSWORD"] = "admin-secret"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["PROJECT_ID"] = ""
os.environ["TRACING_ENABLED"] = "false"
os.environ["DATA_FILE"] = os.path.join(tempfile.mkdtemp(), "users.json")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from langchain_core.language_models import FakeListChatModel  # noqa: E402

# Import main AFTER the environment is prepared
from main import app  # noqa: E402
from database import UserStore, get_store  # noqa: E402

ADMIN_SECRET = "admin-secret"


@pytest.fixture
def store(tmp_path):
    """
    A fresh JSON store per test, injected into every route that depends on get_store.
    """
    test_store = UserStore(str(tmp_path / "users.json"))
    app.dependency_overrides[get_store] = lambda: test_store
    yield test_store
    app.dependency_overrides = {}


@pytest.fixture
def client(store):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers():
    return {"x-admin-secret": ADMIN_SECRET}


@pytest.fixture
def fake_llm(mocker):
    """
    Replaces the OpenAI chat model with a canned-response model.
    Usage: fake_llm("plan text")
    """
    def _install(*responses):
        model = FakeListChatModel(responses=list(responses))
        mocker.patch("chains.plan_chain.get_llm", return_value=model)
        return model
    return _install


@pytest.fixture
def approved_user(client, store, admin_headers):
    """
    Registers a user, approves it through the admin API and logs in.
    Returns the login payload (token + profile) plus the user id.
    """
    client.post("/api/auth/register", json={
        "name": "Bruno", "email": "bruno@example.com", "password": "hunter22", "plan": "basic",
    })
    user_id = store.load().users[0].id
    client.post("/api/admin/update-user-status", json={"userId": user_id, "status": "approved"}, headers=admin_headers)
    res = client.post("/api/auth/login", json={"email": "bruno@example.com", "password": "hunter22"})
    return {**res.json(), "id": user_id}
