"""Trusted caller identity supplied by the upstream session layer."""

from typing import Mapping, Optional

from src.utils.config import IngestionSettings, get_settings
from src.utils.errors import AuthorizationError


def resolve_caller(headers: Mapping[str, str], settings: Optional[IngestionSettings] = None) -> str:
    """Return the admin ID from the identity header or raise AuthorizationError."""
    settings = settings or get_settings()
    wanted = settings.identity_header.lower()
    for name, value in headers.items():
        if name.lower() == wanted and value and value.strip():
            return value.strip()
    raise AuthorizationError()
