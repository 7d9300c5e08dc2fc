from fastapi import Header, Depends
import logging
from database import UserStore, get_store
from models import User
from auth import authenticate_token, validate_admin_secret

logger = logging.getLogger(__name__)

def get_current_user(x_session_token: str = Header(None, alias="x-session-token"), store: UserStore = Depends(get_store)) -> User:
    """
    Resolves the session token sent by the frontend to an approved user.
    Raises AuthError (401) for a missing/unknown token and ForbiddenError (403)
    when the account is not approved.
    """
    return authenticate_token(store, x_session_token)

def require_admin(x_admin_secret: str = Header(None, alias="x-admin-secret")) -> None:
    """Guards admin routes with the shared admin password."""
    validate_admin_secret(x_admin_secret)
