import os
import logging
from google.cloud import secretmanager
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

def get_secret(project_id: str, secret_id: str, version_id: str = "latest") -> str:
    try:
        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode('UTF-8')
    except Exception as e:
        logger.warning(f"Could not fetch secret {secret_id}: {e}")
        return ""

class Settings(BaseSettings):
    # Server
    PORT: int = 10000
    ALLOWED_ORIGINS: str = "*"

    # Secrets (empty string means "not configured")
    OPENAI_API_KEY: str = ""
    ADMIN_PASSWORD: str = ""

    # AI
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Storage
    DATA_FILE: str = os.path.join(BASE_DIR, "users.json")
    STATIC_DIR: str = os.path.join(BASE_DIR, "public")

    # Optional GCP integration
    PROJECT_ID: str = ""
    TRACING_ENABLED: bool = False

    @property
    def allowed_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def load_secrets(self):
        """
        Overrides the AI credential and admin password with values from
        Secret Manager when a GCP project is configured.
        """
        if not self.PROJECT_ID:
            return

        api_key_secret = get_secret(self.PROJECT_ID, "OPENAI_API_KEY")
        if api_key_secret: self.OPENAI_API_KEY = api_key_secret

        admin_secret = get_secret(self.PROJECT_ID, "ADMIN_PASSWORD")
        if admin_secret: self.ADMIN_PASSWORD = admin_secret

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

settings = Settings()
settings.load_secrets()
