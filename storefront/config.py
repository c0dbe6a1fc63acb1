"""
Configuration settings for the Storefront API.
Loads from environment variables with validation.
"""

from typing import List

from pydantic_settings import BaseSettings
from functools import lru_cache


PLACEHOLDER_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Storefront API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"

    # Auth (tokens are issued elsewhere; we only verify them)
    SECRET_KEY: str = PLACEHOLDER_SECRET
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Transactions
    TX_RETRY_ATTEMPTS: int = 3
    TX_RETRY_MAX_WAIT: float = 2.0

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    def validate_production_settings(self):
        """Validate critical settings for production deployment."""
        if not self.DEBUG and self.SECRET_KEY == PLACEHOLDER_SECRET:
            raise ValueError(
                "SECRET_KEY must be set in production. "
                "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader with production validation."""
    settings = Settings()
    if not settings.DEBUG:
        settings.validate_production_settings()
    return settings
