"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Jeff configuration. All values come from environment variables."""

    # Anthropic
    anthropic_api_key: str = Field(default="")
    claude_model: str = Field(default="claude-haiku-4-5-20251001")
    max_tokens: int = Field(default=1024)
    model_timeout_seconds: float = Field(default=30.0)
    model_max_attempts: int = Field(default=3)
    model_retry_delay_seconds: float = Field(default=1.0)

    # Tool-calling loop
    max_tool_rounds: int = Field(default=3)

    # Web fetch
    fetch_timeout_seconds: float = Field(default=10.0)
    fetch_max_chars: int = Field(default=5000)

    # Input limits
    message_max_length: int = Field(default=1000)
    max_raw_message_length: int = Field(default=8000)
    history_max_messages: int = Field(default=10)

    # Response cache
    fingerprint_window: int = Field(default=3)
    cache_ttl_seconds: int = Field(default=24 * 60 * 60)
    cache_sweep_seconds: int = Field(default=60 * 60)

    # Rate limiting (per client address)
    rate_limit_window_seconds: int = Field(default=60)
    rate_limit_max_requests: int = Field(default=20)
    rate_limit_sweep_seconds: int = Field(default=5 * 60)

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Persona and knowledge files
    config_dir: Path = Field(default=Path(__file__).resolve().parent.parent / "config")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
