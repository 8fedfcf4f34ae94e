from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="linkapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Link Monetization API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./linkapi.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    AUTH_TOKEN: str = ""  # payment provider status callback

    # Short links
    FRONTEND_URL: str = "http://localhost:5173"
    SHORT_CODE_LENGTH: int = 8
    CLICK_RETENTION_DAYS: int = 365
    STORAGE_RETRY_ATTEMPTS: int = 1
    ENFORCE_SCHEDULING_WINDOW: bool = False

    # Ledger
    MINIMUM_PAYOUT: Decimal = Decimal("10.00")
    DEFAULT_CURRENCY: str = "USD"

    # Analytics
    DEFAULT_ANALYTICS_PERIOD: str = "30d"
    TOP_LINKS_MAX_LIMIT: int = 50

    ALLOWED_ORIGINS: Optional[str] = "*"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def short_url_for(self, short_code: str) -> str:
        """Public URL rendered for a short code."""
        return f"{self.FRONTEND_URL.rstrip('/')}/l/{short_code}"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
