import secrets
import logging
from datetime import datetime, timezone
from typing import List, Optional
from models import User, UserCollection, UserStatus

logger = logging.getLogger(__name__)

def generate_id() -> str:
    return secrets.token_hex(8)

def generate_session_token() -> str:
    return secrets.token_hex(16)

def get_user_by_email(data: UserCollection, email: str) -> Optional[User]:
    wanted = str(email).lower()
    return next((u for u in data.users if u.email.lower() == wanted), None)

def get_user_by_id(data: UserCollection, user_id: str) -> Optional[User]:
    return next((u for u in data.users if u.id == user_id), None)

def get_user_by_token(data: UserCollection, token: str) -> Optional[User]:
    supplied = str(token).encode("utf-8")
    for user in data.users:
        if user.session_token and secrets.compare_digest(user.session_token.encode("utf-8"), supplied):
            return user
    return None

def create_user(data: UserCollection, name: str, email: str, password_hash: str, plan: str) -> User:
    db_user = User(
        id=generate_id(),
        name=name,
        email=email,
        password=password_hash,
        plan=plan,
        status=UserStatus.PENDING.value,
        created_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        session_token=None,
    )
    data.users.append(db_user)
    return db_user

def issue_session_token(user: User) -> str:
    token = generate_session_token()
    user.session_token = token
    return token

def update_user_status(data: UserCollection, user_id: str, status: str) -> Optional[User]:
    user = get_user_by_id(data, user_id)
    if not user:
        return None
    user.status = status
    return user

def list_users(data: UserCollection) -> List[dict]:
    return [u.public_profile() for u in data.users]
