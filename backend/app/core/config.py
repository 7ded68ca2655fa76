"""Spectrum Sync Configuration - environment driven settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Spectrum Sync"
    app_version: str = "0.4.0"
    debug: bool = False
    log_level: str = "INFO"
    log_format: Literal["structured", "dev"] = "structured"

    # Database
    database_url: str = "sqlite+aiosqlite:///./spectrum_sync.db"
    db_pool_size: int = Field(default=20, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)
    db_pool_timeout: int = Field(default=30, ge=1)
    db_pool_recycle: int = Field(default=1800, ge=60)

    # Signing domains. Each purpose gets its own key, never derived from the other.
    jwt_secret_auth: str
    jwt_secret_invite: str
    jwt_algorithm: str = "HS256"
    auth_token_expire_minutes: int = Field(default=120, ge=60, le=120)
    invite_token_expire_hours: int = Field(default=24, ge=1)

    # Public origin used to build invite links
    base_url: str = "http://localhost:8000"

    # Argon2 cost factors
    password_hash_time_cost: int = Field(default=3, ge=1)
    password_hash_memory_cost: int = Field(default=65536, ge=8)
    password_hash_parallelism: int = Field(default=4, ge=1)

    # Failed login throttling (per client IP)
    login_rate_limit_attempts: int = Field(default=5, ge=1)
    login_rate_limit_window_seconds: int = Field(default=60, ge=1)

    blacklist_cleanup_interval_seconds: int = Field(default=300, ge=10)

    cors_origins: str = "http://localhost:3000"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return level

    @field_validator("jwt_secret_auth", "jwt_secret_invite")
    @classmethod
    def _validate_secret_length(cls, v: str) -> str:
        if len(v) < _MIN_SECRET_LENGTH:
            raise ValueError(
                f"JWT signing secrets must be at least {_MIN_SECRET_LENGTH} characters"
            )
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def _require_distinct_signing_keys(self) -> "Settings":
        # An auth token must never verify as an invite token (and vice versa).
        if self.jwt_secret_auth == self.jwt_secret_invite:
            raise ValueError("JWT_SECRET_AUTH and JWT_SECRET_INVITE must be different keys")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the process settings (cached)."""
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
