"""Library configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Workflow engine settings loaded from environment variables.

    All settings have sensible defaults for development and tests.
    Production deployments should point DATABASE_URL at PostgreSQL.

    Environment Variables:
        DATABASE_URL: SQLAlchemy connection string
        DB_ECHO: Log every SQL statement (default False)
        DB_POOL_SIZE: Connection pool size (ignored for SQLite)
        DB_MAX_OVERFLOW: Pool overflow (ignored for SQLite)
        SQLITE_BUSY_TIMEOUT: Seconds SQLite waits on a locked database
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
        APPLY_MAX_RETRIES: Retries on concurrent modification in apply_with_retry
        INITIAL_STATE_NAME: Name of the DocState new documents start in
    """

    # Database
    DATABASE_URL: str = "sqlite:///./docflow.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    SQLITE_BUSY_TIMEOUT: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Workflow
    APPLY_MAX_RETRIES: int = 3
    INITIAL_STATE_NAME: str = "INITIAL"

    # Optional name recorded by configure_logging
    SERVICE_NAME: Optional[str] = "docflow"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
