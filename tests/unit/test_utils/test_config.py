"""Tests for ingestion settings."""

import pytest
from pydantic import ValidationError

from src.utils.config import IngestionSettings, get_settings, reset_settings


@pytest.mark.unit
def test_defaults():
    settings = IngestionSettings()

    assert settings.roster_size == 5
    assert settings.max_file_bytes == 10 * 1024 * 1024
    assert settings.allowed_extensions == frozenset({".csv", ".xlsx", ".xls"})
    assert settings.upload_field == "file"
    assert settings.count_update_retries == 3
    assert settings.allow_empty_batches is True


@pytest.mark.unit
def test_from_env(monkeypatch):
    monkeypatch.setenv("LIST_ROSTER_SIZE", "3")
    monkeypatch.setenv("LIST_MAX_FILE_BYTES", "2048")
    monkeypatch.setenv("LIST_ALLOWED_EXTENSIONS", "CSV, .xlsx")
    monkeypatch.setenv("LIST_UPLOAD_FIELD", "sheet")
    monkeypatch.setenv("LIST_COUNT_UPDATE_RETRIES", "5")
    monkeypatch.setenv("LIST_ALLOW_EMPTY_BATCHES", "false")

    settings = IngestionSettings.from_env()

    assert settings.roster_size == 3
    assert settings.max_file_bytes == 2048
    assert settings.allowed_extensions == frozenset({".csv", ".xlsx"})
    assert settings.upload_field == "sheet"
    assert settings.count_update_retries == 5
    assert settings.allow_empty_batches is False


@pytest.mark.unit
@pytest.mark.parametrize("overrides", [
    {"roster_size": 0},
    {"max_file_bytes": 0},
    {"count_update_retries": 0},
    {"allowed_extensions": " , "},
])
def test_invalid_settings(overrides):
    with pytest.raises(ValidationError):
        IngestionSettings(**overrides)


@pytest.mark.unit
def test_get_settings_is_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("LIST_ROSTER_SIZE", "7")

    assert get_settings() is first

    reset_settings()
    assert get_settings().roster_size == 7
