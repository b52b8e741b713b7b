# storefront/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - JWT_SECRET (token signing secret, must not be empty)

    Record store selection:
      - RECORD_STORE=sql      -> DATABASE_URL (SQLModel / SQLAlchemy)
      - RECORD_STORE=document -> MONGODB_URL + MONGODB_DB (pymongo)
    """

    PROJECT_NAME: str = "Storefront API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Record store
    RECORD_STORE: Literal["sql", "document"] = "sql"
    DATABASE_URL: str = "sqlite:///./storefront.db"
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "storefront"

    # Token signing (loaded once, never logged)
    JWT_SECRET: SecretStr
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_TTL_MINUTES: int = 60

    # Password hashing cost (bcrypt log2 rounds)
    BCRYPT_ROUNDS: int = 10

    # Upper bounds for blocking work; None disables the bound
    HASH_TIMEOUT_SECONDS: float | None = 5.0
    STORE_TIMEOUT_SECONDS: float | None = 10.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("JWT_SECRET")
    @classmethod
    def secret_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET cannot be empty")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def rounds_in_range(cls, v: int) -> int:
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
