"""Application configuration via Pydantic Settings v2."""

import re
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "StoreOps"
    app_env: Literal["development", "testing", "staging", "production"] = "development"
    debug: bool = False
    timezone: str = "Asia/Taipei"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/storeops.db"
    database_auto_create: bool = True

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # API
    api_host: str = "0.0.0.0"  # noqa: S104
    api_port: int = 8123
    cors_origins: list[str] = []

    # Auth
    auth_token_ttl_hours: int = 24
    auth_bcrypt_rounds: int = 12

    # Attendance
    attendance_work_start: str = "09:00"
    attendance_late_grace_minutes: int = 0
    attendance_standard_hours: float = 8.0

    # Stores / geofence
    store_default_radius_m: int = 100
    store_radius_min_m: int = 10
    store_radius_max_m: int = 50000

    # Orders
    order_default_delivery_threshold: int = 1000

    # Anomaly detection
    anomaly_recent_orders_limit: int = 10
    anomaly_check_after_order: bool = True

    # Revenue bonus
    revenue_income_ratio: float = 0.65
    revenue_weekday_base: int = 13000
    revenue_weekday_rate: float = 0.30
    revenue_holiday_rate: float = 0.38

    # Telegram
    telegram_bot_token: str = ""
    telegram_boss_chat_id: str = ""
    telegram_employee_chat_id: str = ""
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout_seconds: float = 10.0

    @field_validator("attendance_work_start")
    @classmethod
    def validate_work_start(cls, v: str) -> str:
        """Validate the work start time is HH:MM.

        Args:
            v: Time string.

        Returns:
            Validated time string.

        Raises:
            ValueError: If format is invalid.
        """
        match = re.fullmatch(r"(\d{2}):(\d{2})", v)
        if match is None or int(match.group(1)) > 23 or int(match.group(2)) > 59:
            raise ValueError(f"Invalid work start time '{v}'. Expected format: 'HH:MM'")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the timezone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'") from e
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.app_env == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def telegram_enabled(self) -> bool:
        """Notifications need a bot token and at least one chat."""
        return bool(
            self.telegram_bot_token
            and (self.telegram_boss_chat_id or self.telegram_employee_chat_id)
        )

    @property
    def tzinfo(self) -> ZoneInfo:
        """Business timezone used for work dates and local times."""
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
