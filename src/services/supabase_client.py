"""Supabase client wrapper with async context manager support."""

import os
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import SupabaseError
import logging

logger = logging.getLogger(__name__)

AGENTS_TABLE = "agents"
BATCHES_TABLE = "upload_batches"
TASKS_TABLE = "tasks"

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


async def close_supabase_client() -> None:
    """Drop the client reference."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


# Agents table operations
async def insert_agent(agent_data: dict) -> dict:
    """Create a new agent record."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).insert(agent_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create agent: {e}") from e
        if result.data:
            return result.data[0]
        raise SupabaseError("Failed to create agent: no data returned")


async def get_agent_by_id(agent_id: str) -> Optional[dict]:
    """Get agent by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).select("*").eq("agent_id", agent_id).execute()
            return result.data[0] if result.data else None
        except Exception as e:
            raise SupabaseError(f"Failed to get agent: {e}") from e


async def get_agent_by_email(email: str) -> Optional[dict]:
    """Get agent by (lower-cased) e-mail."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).select("agent_id, email").eq("email", email).execute()
            return result.data[0] if result.data else None
        except Exception as e:
            raise SupabaseError(f"Failed to get agent by email: {e}") from e


async def list_agents_by_name() -> list[dict]:
    """Get all agents ordered by name."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).select("agent_id, name, email").order("name").execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to list agents: {e}") from e


async def get_oldest_agents(limit: int) -> list[dict]:
    """Get up to `limit` agents, oldest first (agent_id breaks ties)."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(AGENTS_TABLE)
                .select("*")
                .order("created_at")
                .order("agent_id")
                .limit(limit)
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get agent roster: {e}") from e


async def count_agents_by_ids(agent_ids: list[str]) -> int:
    """Count how many of the given agent IDs exist."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(AGENTS_TABLE)
                .select("agent_id", count="exact")
                .in_("agent_id", agent_ids)
                .execute()
            )
            return result.count or 0
        except Exception as e:
            raise SupabaseError(f"Failed to check agents: {e}") from e


# Upload batches table operations
async def insert_upload_batch(batch_data: dict) -> dict:
    """Create a new upload batch."""
    async with SupabaseClient() as client:
        try:
            result = client.table(BATCHES_TABLE).insert(batch_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create upload batch: {e}") from e
        if result.data:
            return result.data[0]
        raise SupabaseError("Failed to create upload batch: no data returned")


async def get_upload_batch(batch_id: str) -> Optional[dict]:
    """Get upload batch by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table(BATCHES_TABLE).select("*").eq("batch_id", batch_id).execute()
            return result.data[0] if result.data else None
        except Exception as e:
            raise SupabaseError(f"Failed to get upload batch: {e}") from e


async def update_upload_batch(batch_id: str, updates: dict) -> dict:
    """Update an upload batch."""
    async with SupabaseClient() as client:
        try:
            result = client.table(BATCHES_TABLE).update(updates).eq("batch_id", batch_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update upload batch: {e}") from e
        if result.data:
            return result.data[0]
        raise SupabaseError(f"Failed to update upload batch: {batch_id}")


# Tasks table operations
async def insert_tasks(task_rows: list[dict]) -> list[dict]:
    """Bulk-insert tasks in a single request."""
    if not task_rows:
        return []
    async with SupabaseClient() as client:
        try:
            result = client.table(TASKS_TABLE).insert(task_rows).execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to insert tasks: {e}") from e


async def count_tasks_for_batch(batch_id: str) -> int:
    """Count tasks referencing a batch."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(TASKS_TABLE)
                .select("task_id", count="exact")
                .eq("batch_id", batch_id)
                .execute()
            )
            return result.count or 0
        except Exception as e:
            raise SupabaseError(f"Failed to count tasks: {e}") from e


async def get_tasks_for_agent(agent_id: str) -> list[dict]:
    """Get tasks for an agent with batch provenance, newest first.

    Only tasks of finalized batches are returned.
    """
    async with SupabaseClient() as client:
        try:
            result = (
                client.table(TASKS_TABLE)
                .select(f"*, batch:{BATCHES_TABLE}!inner(file_name, created_at, finalized_at)")
                .eq("agent_id", agent_id)
                .not_.is_("batch.finalized_at", "null")
                .order("created_at", desc=True)
                .order("source_row")
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get tasks for agent: {e}") from e
