"""Ingestion settings loaded from environment variables."""

import os
from typing import Optional
from pydantic import BaseModel, Field, field_validator


DEFAULT_ALLOWED_EXTENSIONS = frozenset({".csv", ".xlsx", ".xls"})


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class IngestionSettings(BaseModel):
    """Tunables for list ingestion and distribution."""
    roster_size: int = Field(default=5, ge=1, description="Agents per distribution round")
    max_file_bytes: int = Field(default=10 * 1024 * 1024, gt=0, description="Upload ceiling in bytes")
    allowed_extensions: frozenset[str] = Field(
        default=DEFAULT_ALLOWED_EXTENSIONS,
        description="Accepted file suffixes"
    )
    upload_field: str = Field(default="file", min_length=1, description="Multipart field carrying the file")
    count_update_retries: int = Field(default=3, ge=1, description="Attempts for the batch count write")
    allow_empty_batches: bool = Field(
        default=True,
        description="Create a zero-task batch when every row is rejected"
    )
    identity_header: str = Field(default="X-Admin-Id", description="Header carrying the trusted caller ID")

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def normalize_extensions(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        normalized = set()
        for ext in value:
            ext = str(ext).strip().lower()
            if not ext:
                continue
            normalized.add(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("allowed_extensions must not be empty")
        return frozenset(normalized)

    @classmethod
    def from_env(cls) -> "IngestionSettings":
        """Build settings from environment with defaults for local development."""
        values = {
            "roster_size": int(os.environ.get("LIST_ROSTER_SIZE", "5")),
            "max_file_bytes": int(os.environ.get("LIST_MAX_FILE_BYTES", str(10 * 1024 * 1024))),
            "upload_field": os.environ.get("LIST_UPLOAD_FIELD", "file"),
            "count_update_retries": int(os.environ.get("LIST_COUNT_UPDATE_RETRIES", "3")),
            "allow_empty_batches": _env_bool("LIST_ALLOW_EMPTY_BATCHES", True),
            "identity_header": os.environ.get("IDENTITY_HEADER", "X-Admin-Id"),
        }
        extensions = os.environ.get("LIST_ALLOWED_EXTENSIONS")
        if extensions:
            values["allowed_extensions"] = extensions
        return cls(**values)


_settings: Optional[IngestionSettings] = None


def get_settings() -> IngestionSettings:
    """Get or create the settings singleton."""
    global _settings
    if _settings is None:
        _settings = IngestionSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
