"""Configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from pushline.adapters.http.gateway import DEFAULT_GATEWAY_URL


class PushlineSettings(BaseSettings):
    """Delivery settings loaded from ``PUSHLINE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PUSHLINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Gateway
    gateway_url: str = DEFAULT_GATEWAY_URL
    api_key: Optional[SecretStr] = None
    request_timeout: float = Field(default=10.0, gt=0)

    # Worker pool
    max_workers: int = Field(default=4, ge=1)

    # Backoff
    base_delay: float = Field(default=1.0, gt=0)
    max_delay: float = Field(default=300.0, gt=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    counter_idle_timeout: Optional[float] = Field(default=3600.0, gt=0)


# Global settings instance
_settings: Optional[PushlineSettings] = None


def get_settings() -> PushlineSettings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = PushlineSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
