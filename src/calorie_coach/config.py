"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    timezone: str = "Asia/Tokyo"
    history_limit: int = 30
    context_turns: int = 5
    image_max_edge: int = 1024
    image_quality: int = 70
    backdate_limit_days: int = 30
    idempotency_ttl_seconds: int = 600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
