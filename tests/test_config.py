"""Unit tests for app/config.py computed properties."""

from decimal import Decimal

from app.config import Settings


def test_dev_endpoints_allowed_outside_production() -> None:
    assert Settings(env="development").dev_endpoints_allowed is True
    assert Settings(env="test").dev_endpoints_allowed is True


def test_dev_endpoints_never_in_production() -> None:
    s = Settings(env="production", dev_login_enabled=True, dev_deposit_enabled=True)
    assert s.is_production is True
    assert s.dev_endpoints_allowed is False


def test_staging_is_not_dev() -> None:
    s = Settings(env="staging")
    assert s.is_production is False
    assert s.dev_endpoints_allowed is False


def test_default_limits() -> None:
    s = Settings()
    assert s.min_withdrawal_amount == Decimal("100.00")
    assert s.operation_timeout_seconds > 0
    assert s.session_max_age_seconds == 86_400
    assert s.rate_limit_job_lifecycle_capacity == 20
    assert s.listing_report_threshold == 3


def test_default_settings_testable() -> None:
    """Dev shortcuts are opt-in."""
    s = Settings()
    assert s.dev_login_enabled is False
    assert s.dev_deposit_enabled is False
