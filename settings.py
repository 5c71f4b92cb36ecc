"""
Centralized application settings using Pydantic.
All configuration is loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "SchoolCalendar"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./data/school_calendar.db"

    # Sentry Error Monitoring
    SENTRY_DSN: Optional[str] = None

    # Calendar snapshots handed to the school day checker
    SNAPSHOT_CACHE_ENABLED: bool = True
    SNAPSHOT_CACHE_TTL_SECONDS: int = 300

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
