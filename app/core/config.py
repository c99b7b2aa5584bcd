# app/core/config.py
import os
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
DOTENV = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env")


class Settings(BaseSettings):
    SECRET_KEY: str = Field(min_length=1)
    ALGORITHM: str = "HS256"
    DATABASE_URL: str

    SMTP_SERVER: str
    SMTP_PORT: int
    SMTP_USER: str
    SMTP_PASSWORD: str
    CONTACT_EMAIL: Optional[str] = None

    FRONTEND_URL: str = "http://localhost:3000"
    BASE_URL: str = "http://localhost:8000"
    UPLOAD_DIR: str = "uploads"

    CORS_ORIGINS: List[str] = ["*"]
    ALLOWED_HOSTS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=DOTENV,
        env_ignore_empty=True,
        extra="ignore"
    )

    @property
    def contact_recipient(self) -> str:
        return self.CONTACT_EMAIL or self.SMTP_USER


def load_settings() -> Settings:
    """Build the settings once at startup; a missing secret fails here."""
    return Settings()
