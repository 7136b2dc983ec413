"""Unit tests for settings loading."""

import pytest

from conduit.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "CONDUIT_ROLE",
            "ENVIRONMENT",
            "SCHEDULER_ENABLED",
            "SCHEDULER_TIMEZONE",
            "ADAPTER_TIMEOUT_SECONDS",
            "CREDENTIAL_ENCRYPTION_KEY",
            "ENCRYPTION_KEY",
        ):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)
        assert settings.environment == "development"
        assert settings.conduit_role == "all"
        assert settings.scheduler_enabled is True
        assert settings.scheduler_timezone == "UTC"
        assert settings.adapter_timeout_seconds == 30.0
        assert settings.credential_encryption_key.get_secret_value() == ""

    def test_encryption_key_alias(self, monkeypatch):
        monkeypatch.delenv("CREDENTIAL_ENCRYPTION_KEY", raising=False)
        monkeypatch.setenv("ENCRYPTION_KEY", "from-alias")
        settings = Settings(_env_file=None)
        assert settings.credential_encryption_key.get_secret_value() == "from-alias"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CONDUIT_ROLE", "scheduler")
        monkeypatch.setenv("SCHEDULER_TIMEZONE", "Europe/London")
        monkeypatch.setenv("ADAPTER_TIMEOUT_SECONDS", "5")
        settings = Settings(_env_file=None)
        assert settings.conduit_role == "scheduler"
        assert settings.scheduler_timezone == "Europe/London"
        assert settings.adapter_timeout_seconds == 5.0

    def test_invalid_role_rejected(self, monkeypatch):
        monkeypatch.setenv("CONDUIT_ROLE", "worker")
        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_secret_not_in_repr(self):
        settings = Settings(_env_file=None, credential_encryption_key="top-secret")
        assert "top-secret" not in repr(settings)

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
