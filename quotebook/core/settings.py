# quotebook/core/settings.py
from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "quotebook"
    APP_ENV: str = "local"  # local | development | production

    # --- Database ---
    DATABASE_URL: str = "sqlite:///./quotebook.db"

    # --- Session / JWT ---
    JWT_SECRET: str = "change-me"
    JWT_EXP_HOURS: int = 24
    SESSION_COOKIE_NAME: str = "access_token"
    COOKIE_SECURE: bool = False

    # --- Google OAuth ---
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/auth/google/callback"
    ALLOWED_EMAIL_DOMAIN: str = "motionsense.co.kr"
    SUPER_ADMIN_EMAILS: list[str] = []
    FRONTEND_URL: str = "http://localhost:3000"

    # --- Business rules ---
    VAT_RATE: Decimal = Decimal("0.10")
    QUOTE_VALIDITY_DAYS: int = 30
    QUOTE_EXPIRY_WARNING_DAYS: int = 3
    PROJECT_DEADLINE_WARNING_DAYS: int = 3
    NOTIFICATION_DEDUPE_HOURS: int = 24

    # --- HTTP ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]
    RATE_LIMIT_DEFAULT: str = "1000/15minutes"

    # --- Infra ---
    REDIS_URL: str = "redis://localhost:6379/0"
    SENTRY_DSN: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


settings = Settings()  # leest .env
