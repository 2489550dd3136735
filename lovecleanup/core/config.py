"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI assistant (thread/run backend)
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key for the Luna assistant",
    )
    openai_assistant_id: str = Field(
        default="asst_L9ifj9xsGR5RCMl2IMhGuLEN",
        description="Assistant used when creating runs",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI REST base URL",
    )

    # Anthropic
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key for Claude access",
    )
    anthropic_model: str = Field(
        default="claude-3-haiku-20240307",
        description="Claude model used for chat replies",
    )

    # Provider chain
    lovecleanup_free_providers: bool = Field(
        default=True,
        description="Try the public free text-generation endpoints",
    )
    lovecleanup_session_request_limit: int = Field(
        default=50,
        ge=1,
        description="Maximum remote requests per conversation session",
    )
    lovecleanup_history_window: int = Field(
        default=20,
        ge=2,
        description="Number of history entries kept for context",
    )
    lovecleanup_request_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Per-request HTTP timeout in seconds",
    )
    lovecleanup_poll_max_attempts: int = Field(
        default=30,
        ge=1,
        description="Maximum run status polls for the assistant backend",
    )
    lovecleanup_poll_interval: float = Field(
        default=1.0,
        ge=0,
        description="Seconds between run status polls",
    )

    # Streaming
    lovecleanup_stream_min_delay_ms: int = Field(
        default=30,
        ge=0,
        description="Minimum delay between streamed words (ms)",
    )
    lovecleanup_stream_max_delay_ms: int = Field(
        default=70,
        ge=0,
        description="Maximum delay between streamed words (ms)",
    )

    # API sessions
    lovecleanup_session_idle_timeout: float = Field(
        default=1800.0,
        gt=0,
        description="Seconds of inactivity before an API session is evicted",
    )
    lovecleanup_session_sweep_interval: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between idle session sweeps",
    )

    # Logging
    lovecleanup_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    lovecleanup_debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    lovecleanup_log_dir: str | None = Field(
        default=None,
        description="Directory for rotating log files (console only when unset)",
    )

    @model_validator(mode="after")
    def _check_stream_delays(self) -> "Settings":
        if self.lovecleanup_stream_min_delay_ms > self.lovecleanup_stream_max_delay_ms:
            raise ValueError("stream min delay must not exceed max delay")
        return self

    @property
    def openai_configured(self) -> bool:
        """Whether a usable OpenAI key is present."""
        if self.openai_api_key is None:
            return False
        key = self.openai_api_key.get_secret_value()
        return bool(key) and key != "your_openai_api_key_here"

    @property
    def anthropic_configured(self) -> bool:
        """Whether a usable Anthropic key is present."""
        return self.anthropic_api_key is not None and bool(
            self.anthropic_api_key.get_secret_value()
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.lovecleanup_history_window
        20
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
