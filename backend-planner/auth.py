"""
Identity, session and admin-secret checks.

Registration never logs the user in; an account only becomes usable after an
admin flips its status to "approved" once the payment is confirmed.
"""
import secrets
import logging
from typing import Optional
from passlib.context import CryptContext
from config import settings
from database import UserStore
from models import User
from errors import AuthError, ConfigError, ConflictError, ForbiddenError, ValidationError
import crud

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

REGISTER_SUCCESS_MESSAGE = (
    "Conta criada com sucesso. Agora faça o pagamento do plano escolhido e envie o "
    "comprovante para o WhatsApp do administrador. Seu acesso será liberado após aprovação."
)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """Checks a password against an argon2 hash, or against a legacy plaintext value."""
    if pwd_context.identify(stored, required=False) is None:
        return secrets.compare_digest(stored.encode("utf-8"), password.encode("utf-8"))
    return pwd_context.verify(password, stored)


def register_user(store: UserStore, name: Optional[str], email: Optional[str],
                  password: Optional[str], plan: Optional[str]) -> str:
    if not name or not email or not password or not plan:
        raise ValidationError("Informe nome, e-mail, senha e plano.")
    if len(str(password)) < MIN_PASSWORD_LENGTH:
        raise ValidationError("A senha deve ter pelo menos 6 caracteres.")

    password_hash = hash_password(str(password))
    with store.transaction() as data:
        if crud.get_user_by_email(data, email):
            raise ConflictError("Já existe uma conta com esse e-mail. Tente fazer login.")
        user = crud.create_user(data, name=str(name), email=str(email), password_hash=password_hash, plan=str(plan))

    logger.info(f"Registered user {user.id} ({user.plan}), awaiting approval")
    return REGISTER_SUCCESS_MESSAGE


def login_user(store: UserStore, email: Optional[str], password: Optional[str]) -> dict:
    if not email or not password:
        raise ValidationError("Informe e-mail e senha.")

    with store.transaction() as data:
        user = crud.get_user_by_email(data, email)
        if not user or not verify_password(str(password), user.password):
            logger.warning("Login rejected: invalid credentials")
            raise AuthError("Login inválido.")
        if not user.is_approved:
            logger.info(f"Login refused for user {user.id} with status {user.status}")
            raise ForbiddenError(
                "Sua conta ainda não foi aprovada. Aguarde o administrador confirmar o pagamento do plano.",
                status=user.status,
            )
        if pwd_context.identify(user.password, required=False) is None:
            # Upgrade legacy plaintext password now that we know it
            user.password = hash_password(str(password))
        token = crud.issue_session_token(user)

    logger.info(f"User {user.id} logged in")
    return {
        "token": token,
        "name": user.name,
        "email": user.email,
        "plan": user.plan,
        "status": user.status,
    }


def authenticate_token(store: UserStore, token: Optional[str]) -> User:
    if not token:
        raise AuthError("Token de sessão ausente.")

    user = crud.get_user_by_token(store.load(), token)
    if not user:
        logger.warning("Rejected unknown session token")
        raise AuthError("Sessão inválida.")
    if not user.is_approved:
        raise ForbiddenError("Sua conta não está aprovada. Aguarde a confirmação do pagamento.")
    return user


def validate_admin_secret(supplied: Optional[str], mismatch_message: str = "Senha de administrador inválida.") -> bool:
    admin_password = settings.ADMIN_PASSWORD
    if not admin_password:
        raise ConfigError("ADMIN_PASSWORD não configurada no servidor.")
    if not supplied or not secrets.compare_digest(str(supplied).encode("utf-8"), admin_password.encode("utf-8")):
        logger.warning("Rejected admin secret")
        raise AuthError(mismatch_message)
    return True
