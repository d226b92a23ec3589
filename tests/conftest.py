"""Shared pytest fixtures and configuration."""

import os
import pytest

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src.utils.config import IngestionSettings, reset_settings  # noqa: E402
from tests.utils.factories import create_agent_data  # noqa: E402
from tests.utils.fake_supabase import FakeSupabase  # noqa: E402

ADMIN_ID = "01JADMIN0000000000000000AA"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Each test reads settings from the environment it set up."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    """Default ingestion settings (roster of 5, 10 MiB ceiling)."""
    return IngestionSettings()


@pytest.fixture
def fake_supabase(monkeypatch):
    """In-memory Supabase installed as the process-wide client."""
    fake = FakeSupabase()
    monkeypatch.setattr("src.services.supabase_client._client", fake)
    return fake


@pytest.fixture
def seed_agents(fake_supabase):
    """Insert N agents (oldest first) and return their rows."""
    def _seed(count: int) -> list[dict]:
        rows = [create_agent_data(agent_id=f"AGENT{i:02d}") for i in range(count)]
        fake_supabase.seed("agents", rows)
        return fake_supabase.tables["agents"][-count:] if count else []
    return _seed


@pytest.fixture
def admin_headers():
    return {"X-Admin-Id": ADMIN_ID}

