"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from switchboard.config import Environment, Settings, clear_settings_cache, get_settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "DATABASE_URL": "postgresql+psycopg://localhost/test",
        "SWITCHBOARD_ENV": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestSettingsDefaults:
    """Defaults and basic parsing."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_JSON", raising=False)
        s = _make_settings()
        assert s.switchboard_env == Environment.TEST
        assert s.password_min_length == 8
        assert s.access_token_ttl_days is None
        assert s.log_json is True

    def test_overrides_accepted(self):
        s = _make_settings(PASSWORD_MIN_LENGTH=12, ACCESS_TOKEN_TTL_DAYS=30, LOG_JSON=False)
        assert s.password_min_length == 12
        assert s.access_token_ttl_days == 30
        assert s.log_json is False

    def test_is_sqlite(self):
        assert _make_settings(DATABASE_URL="sqlite+pysqlite:///:memory:").is_sqlite
        assert not _make_settings().is_sqlite


class TestSettingsValidation:
    """Unsafe configurations are rejected at load time."""

    def test_database_url_required(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_short_password_minimum_rejected(self):
        with pytest.raises(ValidationError, match="PASSWORD_MIN_LENGTH"):
            _make_settings(PASSWORD_MIN_LENGTH=4)

    def test_zero_ttl_rejected(self):
        with pytest.raises(ValidationError, match="ACCESS_TOKEN_TTL_DAYS"):
            _make_settings(ACCESS_TOKEN_TTL_DAYS=0)

    @pytest.mark.parametrize("env", ["staging", "prod"])
    def test_sqlite_rejected_outside_local_and_test(self, env):
        with pytest.raises(ValidationError, match="SQLite"):
            _make_settings(SWITCHBOARD_ENV=env, DATABASE_URL="sqlite+pysqlite:///x.db")

    def test_sqlite_allowed_in_local(self):
        s = _make_settings(SWITCHBOARD_ENV="local", DATABASE_URL="sqlite+pysqlite:///x.db")
        assert s.switchboard_env == Environment.LOCAL


class TestGetSettings:
    """get_settings caching."""

    def test_cached_until_cleared(self, monkeypatch):
        monkeypatch.setenv("PASSWORD_MIN_LENGTH", "10")
        clear_settings_cache()
        first = get_settings()
        assert first.password_min_length == 10

        monkeypatch.setenv("PASSWORD_MIN_LENGTH", "11")
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings().password_min_length == 11
