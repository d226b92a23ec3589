"""Batch ledger - create upload batches and finalize them with their tasks."""

import asyncio
from datetime import datetime, timezone
from typing import Sequence

from ulid import ULID

from src.models.ingestion import Assignment, IngestionResult, RowRejection
from src.models.upload_batch import UploadBatch
from src.services.supabase_client import (
    count_agents_by_ids,
    count_tasks_for_batch,
    get_upload_batch,
    insert_tasks,
    insert_upload_batch,
    update_upload_batch,
)
from src.utils.errors import PersistenceError, SupabaseError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

COUNT_RETRY_BACKOFF_SECONDS = 0.2


def generate_batch_id() -> str:
    """Generate a text-based batch ID (ULID format)."""
    return str(ULID())


def generate_task_id() -> str:
    """Generate a text-based task ID (ULID format)."""
    return str(ULID())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def begin_batch(file_name: str, uploader_id: str) -> UploadBatch:
    """Persist a batch with total_tasks = 0 before any task is written."""
    record = await insert_upload_batch({
        "batch_id": generate_batch_id(),
        "file_name": file_name,
        "uploaded_by": uploader_id,
        "total_tasks": 0,
    })
    batch = UploadBatch(**record)
    logger.info(
        "Upload batch started",
        batch_id=batch.batch_id,
        uploaded_by=mask_user_id(uploader_id),
    )
    return batch


async def get_batch(batch_id: str) -> UploadBatch:
    """Read one batch; raises PersistenceError if it does not exist."""
    record = await get_upload_batch(batch_id)
    if not record:
        raise PersistenceError(f"Upload batch not found: {batch_id}")
    return UploadBatch(**record)


async def _check_before_write(batch_id: str, assignments: Sequence[Assignment]) -> None:
    batch = await get_batch(batch_id)
    if batch.is_finalized or batch.total_tasks:
        raise PersistenceError(f"Upload batch already finalized: {batch_id}")

    agent_ids = sorted({a.agent_id for a in assignments})
    if agent_ids:
        found = await count_agents_by_ids(agent_ids)
        if found != len(agent_ids):
            raise PersistenceError(
                f"Assignment references unknown agents: expected {len(agent_ids)}, found {found}"
            )


async def _write_count(batch_id: str, total: int, attempts: int) -> UploadBatch:
    """Write total_tasks and finalized_at, retrying transient storage failures."""
    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            record = await update_upload_batch(batch_id, {
                "total_tasks": total,
                "finalized_at": _now_iso(),
            })
            return UploadBatch(**record)
        except SupabaseError as e:
            last_error = e
            logger.warning(
                "Batch count update failed",
                batch_id=batch_id,
                attempt=attempt,
                max_attempts=attempts,
                error=str(e),
            )
            if attempt < attempts:
                await asyncio.sleep(COUNT_RETRY_BACKOFF_SECONDS * attempt)

    logger.error(
        "Batch left unfinalized after task write; run reconcile_batch_count",
        batch_id=batch_id,
        persisted_tasks=total,
    )
    raise PersistenceError(f"Failed to finalize upload batch {batch_id}") from last_error


async def finalize(
    batch_id: str,
    assignments: Sequence[Assignment],
    rejections: Sequence[RowRejection] = (),
    count_update_retries: int = 3,
) -> IngestionResult:
    """Bulk-persist tasks for a batch, confirm the write, then record the count.

    Tasks go out in a single insert so either all accepted rows land or none do.
    """
    await _check_before_write(batch_id, assignments)

    task_rows = [
        {
            "task_id": generate_task_id(),
            "first_name": a.row.first_name,
            "phone": a.row.phone,
            "notes": a.row.notes,
            "agent_id": a.agent_id,
            "batch_id": batch_id,
            "source_row": a.row.source_row,
        }
        for a in assignments
    ]

    persisted = await insert_tasks(task_rows)
    if len(persisted) != len(task_rows):
        raise PersistenceError(
            f"Task insert for batch {batch_id} returned {len(persisted)} rows, expected {len(task_rows)}"
        )

    batch = await _write_count(batch_id, len(persisted), count_update_retries)

    logger.info(
        "Upload batch finalized",
        batch_id=batch_id,
        accepted_count=len(persisted),
        rejected_count=len(rejections),
    )
    return IngestionResult(
        batch=batch,
        accepted_count=len(persisted),
        rejections=list(rejections),
    )


async def reconcile_batch_count(batch_id: str) -> UploadBatch:
    """Recount persisted tasks for a batch and rewrite its total."""
    total = await count_tasks_for_batch(batch_id)
    batch = await _write_count(batch_id, total, attempts=1)
    logger.info("Upload batch reconciled", batch_id=batch_id, total_tasks=total)
    return batch
