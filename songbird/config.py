from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_config() -> Config:
    return Config()


class Config(BaseSettings):
    backend_endpoint: str = "http://localhost:8080"
    request_timeout_seconds: float = 30

    # Polling
    timeout_in_minutes: float = 5
    poll_interval_seconds: float = 5
    settle_delay_seconds: float = 1
    max_empty_attempts: int = 8
    submission_settle_seconds: float = 3

    youtube_api_key: str | None = None

    default_model_provider: str = "openai"
    default_model_name: str = "gpt-4o"
    default_system_prompt: str | None = None

    model_config = SettingsConfigDict(env_prefix="songbird_", case_sensitive=False, frozen=True)
