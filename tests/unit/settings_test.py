"""Unit tests for environment-driven settings."""

import logging

import pytest
from pydantic import ValidationError

from serialization_audit.settings import Settings, configure_logging, get_settings


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SERIALIZATION_AUDIT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("SERIALIZATION_AUDIT_MAX_WORKERS", raising=False)

    settings = get_settings()

    assert settings.log_level == "WARNING"
    assert settings.max_workers is None


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SERIALIZATION_AUDIT_LOG_LEVEL", "debug")
    monkeypatch.setenv("SERIALIZATION_AUDIT_MAX_WORKERS", "4")

    settings = get_settings()

    assert settings.log_level == "DEBUG"
    assert settings.max_workers == 4


def test_rejects_non_numeric_workers_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SERIALIZATION_AUDIT_MAX_WORKERS", "many")

    with pytest.raises(ValidationError):
        get_settings()


def test_empty_workers_variable_means_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SERIALIZATION_AUDIT_MAX_WORKERS", "")

    assert get_settings().max_workers is None


def test_rejects_unknown_log_level() -> None:
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


def test_rejects_non_positive_workers() -> None:
    with pytest.raises(ValidationError):
        Settings(max_workers=0)


def test_configure_logging_sets_root_level() -> None:
    configure_logging("INFO")

    assert logging.getLogger().level == logging.INFO
