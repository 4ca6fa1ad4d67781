"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Listening address for `python -m app.main`
    HOST: str = "127.0.0.1"
    PORT: int = 8080

    # SQLite file by default; PostgreSQL for shared deployments
    DATABASE_URL: str = "sqlite:///./data/auth.db"
    # Create missing tables on startup (use Alembic instead when False)
    DB_AUTO_CREATE: bool = True

    # Bcrypt work factor for new password hashes
    BCRYPT_ROUNDS: int = 10

    # Lockout policy: MAX_FAILED consecutive failures lock the account for LOCK_DURATION_SECONDS
    MAX_FAILED: int = 5
    LOCK_DURATION_SECONDS: int = 300
    # Compare-and-swap retries per login attempt before giving up with a server error
    AUTH_MAX_WRITE_RETRIES: int = 16

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL "
                "(e.g. sqlite:///./data/auth.db or postgresql+psycopg2://...)"
            )
        return v.strip()

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @field_validator("MAX_FAILED")
    @classmethod
    def validate_max_failed(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError("MAX_FAILED must be between 1 and 100")
        return v

    @field_validator("LOCK_DURATION_SECONDS")
    @classmethod
    def validate_lock_duration(cls, v: int) -> int:
        if v < 1 or v > 86400:
            raise ValueError(
                "LOCK_DURATION_SECONDS must be between 1 and 86400 (1 second to 1 day)"
            )
        return v

    @field_validator("AUTH_MAX_WRITE_RETRIES")
    @classmethod
    def validate_max_write_retries(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError("AUTH_MAX_WRITE_RETRIES must be between 1 and 100")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
