from models import UserStatus

# End-to-end flows through the HTTP surface with a temp store and a fake chat model.

def test_registration_to_plan_flow(client, store, admin_headers, fake_llm):
    # 1. Register -> pending
    res = client.post("/api/auth/register", json={
        "name": "Ana", "email": "a@x.com", "password": "secret1", "plan": "pro",
    })
    assert res.status_code == 200
    user = store.load().users[0]
    assert user.status == UserStatus.PENDING.value

    # 2. Login before approval is refused
    res = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 403
    assert res.json()["status"] == "pending"

    # 3. Admin approves
    res = client.post("/api/admin/update-user-status", json={"userId": user.id, "status": "approved"}, headers=admin_headers)
    assert res.json() == {"ok": True}

    # 4. Login now succeeds
    res = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["name"] == "Ana"
    assert body["email"] == "a@x.com"
    assert body["plan"] == "pro"
    assert body["status"] == "approved"
    token = body["token"]

    # 5. Plan generation with the session token
    fake_llm("1. Resumo da estratégia: foco em Instagram.")
    res = client.post("/api/plan", json={"segmento": "loja de roupas"}, headers={"x-session-token": token})
    assert res.status_code == 200
    assert res.json()["plan"]

def test_plan_fallback_text_when_model_returns_nothing(client, approved_user, fake_llm):
    fake_llm("")
    res = client.post("/api/plan", json={"segmento": "loja de roupas"}, headers={"x-session-token": approved_user["token"]})
    assert res.status_code == 200
    assert res.json()["plan"] == "Não foi possível gerar o planejamento. Tente novamente."

def test_token_rejected_after_deapproval(client, approved_user, admin_headers, fake_llm):
    fake_llm("plano", "plano")
    headers = {"x-session-token": approved_user["token"]}
    assert client.post("/api/plan", json={}, headers=headers).status_code == 200

    client.post("/api/admin/update-user-status", json={"userId": approved_user["id"], "status": "rejected"}, headers=admin_headers)

    res = client.post("/api/plan", json={}, headers=headers)
    assert res.status_code == 403

def test_new_login_replaces_previous_token(client, approved_user):
    res = client.post("/api/auth/login", json={"email": "bruno@example.com", "password": "hunter22"})
    new_token = res.json()["token"]
    assert new_token != approved_user["token"]

    res = client.post("/api/plan", json={}, headers={"x-session-token": approved_user["token"]})
    assert res.status_code == 401

def test_update_status_is_idempotent(client, store, admin_headers):
    client.post("/api/auth/register", json={
        "name": "Ana", "email": "a@x.com", "password": "secret1", "plan": "pro",
    })
    user_id = store.load().users[0].id

    for _ in range(2):
        res = client.post("/api/admin/update-user-status", json={"userId": user_id, "status": "approved"}, headers=admin_headers)
        assert res.status_code == 200
        assert res.json() == {"ok": True}

    users = client.get("/api/admin/users", headers=admin_headers).json()["users"]
    assert [u["status"] for u in users] == ["approved"]

def test_admin_can_move_user_to_any_status(client, approved_user, store, admin_headers):
    for status in ("rejected", "pending", "approved"):
        client.post("/api/admin/update-user-status", json={"userId": approved_user["id"], "status": status}, headers=admin_headers)
        assert store.load().users[0].status == status
