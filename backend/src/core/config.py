"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str
    # Seconds a single unit of work may spend in storage before it is rolled back
    storage_timeout_seconds: float = 10.0
    # Connection attempts made by Database.open() before giving up
    db_connect_retries: int = 5
    db_connect_retry_delay: float = 5.0

    # Redis (identity cache). App runs without it in degraded mode.
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = True
    identity_cache_ttl_seconds: int = 300

    # CORS - comma-separated string in the environment, list in code
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173"]

    # Development mode - requests without X-User-Subject act as dev_subject
    dev_mode: bool = False
    dev_subject: str = "dev-user"

    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Split a comma-separated origins string, dropping empty entries."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
