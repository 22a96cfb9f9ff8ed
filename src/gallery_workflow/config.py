"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    public_base_url: str = "http://localhost:8000"
    storage_bucket: str = "proofs"
    zapier_webhook_send: str | None = None
    zapier_webhook_review: str | None = None
    zapier_webhook_deliver: str | None = None
    webhook_timeout_seconds: float = 10.0
    webhook_max_attempts: int = 3
    webhook_backoff_seconds: float = 0.5
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def webhook_urls(self) -> dict[str, str | None]:
        """Return the configured webhook URL per notification event."""
        return {
            "send": _clean_url(self.zapier_webhook_send),
            "review": _clean_url(self.zapier_webhook_review),
            "deliver": _clean_url(self.zapier_webhook_deliver),
        }


def _clean_url(raw: str | None) -> str | None:
    if raw is None:
        return None
    cleaned = raw.strip()
    return cleaned or None
