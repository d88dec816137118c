from __future__ import annotations

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from sessionbook.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="prod", secret_key="change-me-in-production")


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"


def test_schedule_timezone_defaults_to_utc() -> None:
    settings = Settings(_env_file=None)
    assert settings.schedule_zone == ZoneInfo("UTC")
    assert settings.booking_cancellation_window_hours == 24


def test_schedule_timezone_accepts_iana_name() -> None:
    settings = Settings(_env_file=None, schedule_timezone=" Europe/Berlin ")
    assert settings.schedule_zone == ZoneInfo("Europe/Berlin")


def test_unknown_schedule_timezone_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, schedule_timezone="Mars/Olympus_Mons")


def test_negative_cancellation_window_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, booking_cancellation_window_hours=-1)
