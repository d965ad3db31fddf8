"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from pushline.adapters.http import DEFAULT_GATEWAY_URL
from pushline.config import PushlineSettings, get_settings, reset_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in (
        "PUSHLINE_GATEWAY_URL",
        "PUSHLINE_API_KEY",
        "PUSHLINE_MAX_WORKERS",
        "PUSHLINE_BASE_DELAY",
        "PUSHLINE_MAX_DELAY",
        "PUSHLINE_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


class TestPushlineSettings:
    """Test PushlineSettings."""

    def test_defaults(self):
        settings = PushlineSettings(_env_file=None)

        assert settings.gateway_url == DEFAULT_GATEWAY_URL
        assert settings.api_key is None
        assert settings.max_workers == 4
        assert settings.base_delay == 1.0
        assert settings.max_delay == 300.0
        assert settings.max_attempts is None
        assert settings.counter_idle_timeout == 3600.0

    def test_reads_prefixed_environment(self, monkeypatch):
        """PUSHLINE_* variables override the defaults."""
        monkeypatch.setenv("PUSHLINE_GATEWAY_URL", "https://push.example.test/send")
        monkeypatch.setenv("PUSHLINE_API_KEY", "secret-key")
        monkeypatch.setenv("PUSHLINE_MAX_WORKERS", "16")
        monkeypatch.setenv("PUSHLINE_MAX_ATTEMPTS", "5")

        settings = PushlineSettings(_env_file=None)

        assert settings.gateway_url == "https://push.example.test/send"
        assert settings.api_key.get_secret_value() == "secret-key"
        assert settings.max_workers == 16
        assert settings.max_attempts == 5

    def test_api_key_is_hidden_in_repr(self, monkeypatch):
        monkeypatch.setenv("PUSHLINE_API_KEY", "secret-key")

        assert "secret-key" not in repr(PushlineSettings(_env_file=None))

    @pytest.mark.parametrize(
        "name,value",
        [
            ("PUSHLINE_MAX_WORKERS", "0"),
            ("PUSHLINE_BASE_DELAY", "0"),
            ("PUSHLINE_MAX_ATTEMPTS", "0"),
        ],
    )
    def test_rejects_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            PushlineSettings(_env_file=None)

    def test_get_settings_is_cached_until_reset(self, monkeypatch):
        """get_settings() returns one instance until reset_settings() is called."""
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("PUSHLINE_MAX_WORKERS", "8")
        assert get_settings().max_workers == first.max_workers

        reset_settings()
        assert get_settings().max_workers == 8
