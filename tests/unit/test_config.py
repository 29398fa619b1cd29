"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from src.core.config import Settings


def test_require_credential_with_valid_value() -> None:
    """Test require_credential returns value when credential is set."""
    settings = Settings(firebase_api_key="AIza-test")

    result = settings.require_credential("firebase_api_key", "Firebase")

    assert result == "AIza-test"


def test_require_credential_with_none_raises_error() -> None:
    """Test require_credential raises ValueError when credential is None."""
    settings = Settings(firebase_api_key=None)

    with pytest.raises(ValueError, match="Firebase credential not configured"):
        settings.require_credential("firebase_api_key", "Firebase")


def test_require_credential_error_message_includes_field_name() -> None:
    """Test error message includes the environment variable name."""
    settings = Settings(firebase_api_key="")

    with pytest.raises(ValueError, match="FIREBASE_API_KEY"):
        settings.require_credential("firebase_api_key", "Firebase")


def test_invalid_generation_cron_rejected() -> None:
    """Test the generation schedule must be a CRON expression."""
    with pytest.raises(ValidationError, match="Invalid CRON expression"):
        Settings(generation_cron="every night")


def test_negative_horizon_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(generation_horizon_days=-1)


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test environment variables override defaults."""
    monkeypatch.setenv("AUTH_BACKEND", "signed")
    monkeypatch.setenv("ENFORCE_STATUS_TRANSITIONS", "true")
    monkeypatch.setenv("GENERATION_HORIZON_DAYS", "14")

    settings = Settings()

    assert settings.auth_backend == "signed"
    assert settings.enforce_status_transitions is True
    assert settings.generation_horizon_days == 14


def test_is_development() -> None:
    assert Settings(environment="development").is_development
    assert not Settings(environment="production").is_development
