"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    backend_url: str
    auth_provider: Literal["session", "mock"] = "session"
    session_secret: str | None = None
    session_ttl_seconds: int = Field(default=12 * 60 * 60, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    # Unset means submissions wait on the backend without a read timeout.
    submit_timeout_seconds: float | None = Field(default=None, gt=0)
    api_prefix: str = "/api"

    model_config = SettingsConfigDict(env_prefix="SCRIBE_GATEWAY_", extra="ignore")

    @model_validator(mode="after")
    def _require_session_secret(self) -> "Settings":
        if self.auth_provider == "session" and not self.session_secret:
            raise ValueError("SCRIBE_GATEWAY_SESSION_SECRET is required when auth_provider is 'session'")
        self.backend_url = self.backend_url.rstrip("/")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
