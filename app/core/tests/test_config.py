"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    """Remove the test-suite overrides so defaults are visible."""
    for name in ("APP_ENV", "DATABASE_URL", "AUTH_BCRYPT_ROUNDS"):
        monkeypatch.delenv(name, raising=False)


def test_settings_has_defaults(clean_env):
    """Settings should have sensible defaults."""
    settings = Settings(_env_file=None)

    assert settings.app_name == "StoreOps"
    assert settings.app_env == "development"
    assert settings.debug is False
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.api_port == 8123
    assert settings.timezone == "Asia/Taipei"
    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert settings.auth_token_ttl_hours == 24
    assert settings.order_default_delivery_threshold == 1000
    assert settings.revenue_income_ratio == 0.65


def test_settings_is_development_property():
    """is_development should return True for development env."""
    settings = Settings(app_env="development")
    assert settings.is_development is True
    assert settings.is_production is False


def test_settings_is_production_property():
    """is_production should return True for production env."""
    settings = Settings(app_env="production")
    assert settings.is_development is False
    assert settings.is_production is True


def test_settings_is_testing_property():
    settings = Settings(app_env="testing")
    assert settings.is_testing is True


def test_get_settings_returns_singleton():
    """get_settings should return cached singleton."""
    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_settings_from_environment(monkeypatch):
    """Settings should load from environment variables."""
    monkeypatch.setenv("APP_NAME", "TestApp")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_BOSS_CHAT_ID", "-100")

    # Create new settings instance (not cached)
    settings = Settings()

    assert settings.app_name == "TestApp"
    assert settings.debug is True
    assert settings.log_level == "DEBUG"
    assert settings.telegram_enabled is True


def test_telegram_disabled_without_chat_ids():
    settings = Settings(telegram_bot_token="123:abc", telegram_boss_chat_id="", telegram_employee_chat_id="")
    assert settings.telegram_enabled is False


def test_telegram_disabled_without_token():
    settings = Settings(telegram_bot_token="", telegram_boss_chat_id="-100")
    assert settings.telegram_enabled is False


@pytest.mark.parametrize("value", ["9:00", "24:00", "09:60", "nine"])
def test_invalid_work_start_rejected(value):
    with pytest.raises(ValidationError):
        Settings(attendance_work_start=value)


def test_unknown_timezone_rejected():
    with pytest.raises(ValidationError):
        Settings(timezone="Mars/Olympus_Mons")


def test_tzinfo_property():
    settings = Settings(timezone="Asia/Taipei")
    assert settings.tzinfo.key == "Asia/Taipei"
