import json

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Resolve repository root regardless of current working directory
BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Dental Portal"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    # One origin or many, comma separated or as a JSON list
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'dental_portal.db'}"
    # Production schemas are managed by alembic; dev/test can let the app create tables.
    CREATE_TABLES_ON_STARTUP: bool = True

    # ===== Session tokens =====
    # No default: the app refuses to start without a secret.
    JWT_SECRET_KEY: str | None = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ===== Password reset tokens =====
    # Must differ from JWT_SECRET_KEY.
    RESET_PASSWORD_SECRET: str | None = None
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Used to build the link sent in reset emails
    APP_URL: str = "http://localhost:3000"

    # ===== SMTP (optional) =====
    # When SMTP_HOST is empty, reset links are written to the log instead of mailed.
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str = "Dental Portal <no-reply@localhost>"
    SMTP_STARTTLS: bool = True

    # ===== Bootstrap admin (optional) =====
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_NAME: str = "Administrator"

    @property
    def COOKIE_SECURE(self) -> bool:
        return self.ENV.strip().lower() == "production"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if v is None or v == "":
            return []

        if isinstance(v, list):
            return v

        # JSON list first, then comma separated
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                try:
                    return json.loads(s)
                except ValueError:
                    pass
            return [item.strip() for item in s.split(",") if item.strip()]

        return v


settings = Settings()
