"""
Configuration and settings for the task board backend.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(
        default=None, validation_alias="DATABASE_URL"
    )
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    db_pool_timeout: float = Field(default=10.0, validation_alias="DB_POOL_TIMEOUT")
    db_statement_timeout_ms: int = Field(
        default=5000, validation_alias="DB_STATEMENT_TIMEOUT_MS"
    )

    # Session tokens
    jwt_secret: str = Field(
        default="dev-secret-change-me",
        validation_alias=AliasChoices("SECRET", "JWT_SECRET"),
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    token_ttl_seconds: int = Field(default=3600, validation_alias="TOKEN_TTL_SECONDS")

    # Password hashing cost
    bcrypt_rounds: int = Field(default=10, validation_alias="BCRYPT_ROUNDS")

    # HTTP surface
    # JSON list or comma-separated origins
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3001"], validation_alias="CORS_ORIGINS"
    )
    static_dir: str = Field(default="public", validation_alias="STATIC_DIR")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="TASKBOARD_USE_IN_MEMORY_BACKENDS"
    )

    @field_validator("database_url")
    @classmethod
    def _use_psycopg_driver(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql+psycopg://", 1)
        if value.startswith("postgresql://"):
            return value.replace("postgresql://", "postgresql+psycopg://", 1)
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
