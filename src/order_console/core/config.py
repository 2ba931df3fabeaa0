"""Console settings and backend URL helpers."""

import os
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Order Console"
    ENVIRONMENT: str = "development"  # development | production | test
    LOG_LEVEL: str | None = None

    # Backend
    ORDERS_API_BASE_URL: str = "http://localhost:8000"
    API_PREFIX: str = ""
    # Only the connect phase is bounded; stream reads may idle indefinitely.
    CONNECT_TIMEOUT_SECONDS: float = 10.0

    # Analyze request defaults
    ANALYZE_SHEET_NAME: str = "入札書"

    @field_validator("ORDERS_API_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: object) -> str:
        """Normalize the base URL so paths can be appended verbatim."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("ORDERS_API_BASE_URL must be a non-empty string")
        return v.strip().rstrip("/")

    @field_validator("API_PREFIX", mode="before")
    @classmethod
    def normalize_prefix(cls, v: object) -> str:
        if v is None:
            return ""
        s = str(v).strip().strip("/")
        return f"/{s}" if s else ""


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""
    # pydantic-settings accepts the runtime-only `_env_file` kwarg; mypy's stub
    # does not know about it.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]


def build_api_url(path: str, settings: Settings | None = None) -> str:
    """Join the configured base URL, API prefix and an endpoint path."""
    settings = settings or get_settings()
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{settings.ORDERS_API_BASE_URL}{settings.API_PREFIX}{path}"
