"""List ingestor - decode, validate, distribute and persist an uploaded contact list."""

from typing import Optional

from src.models.ingestion import IngestionResult, UploadedFile
from src.services.agent_directory import snapshot_roster
from src.services.batch_ledger import begin_batch, finalize
from src.services.row_validator import validate_rows
from src.services.tabular_decoder import decode_rows, detect_decoder, file_extension
from src.services.task_allocator import allocate, distribution_summary
from src.utils.config import IngestionSettings, get_settings
from src.utils.errors import (
    DecodeError,
    FileTooLargeError,
    NoValidRowsError,
    UnsupportedFormatError,
)
from src.utils.logging import (
    get_structured_logger,
    log_timing,
    mask_user_id,
    sanitize_text,
    timed,
)

logger = get_structured_logger(__name__)


def screen_upload(upload: UploadedFile, settings: IngestionSettings) -> None:
    """Reject uploads that must never reach the decoder."""
    if file_extension(upload.file_name) not in settings.allowed_extensions:
        raise UnsupportedFormatError()
    detect_decoder(upload.file_name)

    if upload.size > settings.max_file_bytes:
        raise FileTooLargeError(
            f"Uploaded file is too large. Limit is {settings.max_file_bytes} bytes."
        )
    if upload.size == 0:
        raise DecodeError("Uploaded file is empty.")


@timed("ingest_upload")
async def ingest_upload(
    upload: UploadedFile,
    uploader_id: str,
    settings: Optional[IngestionSettings] = None,
) -> IngestionResult:
    """Run one upload through screen -> roster -> decode/validate -> allocate -> ledger.

    Nothing is written until the file has decoded completely and the roster
    is known to be large enough.
    """
    settings = settings or get_settings()

    logger.info(
        "Ingesting upload",
        file_name=sanitize_text(upload.file_name, max_length=120),
        payload_bytes=upload.size,
        uploaded_by=mask_user_id(uploader_id),
    )

    screen_upload(upload, settings)

    roster = await snapshot_roster(settings.roster_size)

    with log_timing("decode_and_validate", logger=logger, payload_bytes=upload.size):
        try:
            accepted, rejections = validate_rows(decode_rows(upload.content, upload.file_name))
        except DecodeError as e:
            logger.warning(
                "Upload could not be decoded",
                file_type=file_extension(upload.file_name),
                cause=type(e.cause).__name__ if e.cause else None,
                detail=sanitize_text(str(e.cause)) if e.cause else None,
            )
            raise

    if not accepted:
        if not settings.allow_empty_batches:
            raise NoValidRowsError([r.message for r in rejections])
        logger.warning("Upload has no valid rows; creating empty batch", rejected_count=len(rejections))

    assignments = allocate(accepted, roster)
    logger.info(
        "Rows distributed",
        assigned_count=len(assignments),
        distribution={mask_user_id(k): v for k, v in distribution_summary(assignments, roster).items()},
    )

    batch = await begin_batch(upload.file_name, uploader_id)
    return await finalize(
        batch.batch_id,
        assignments,
        rejections,
        count_update_retries=settings.count_update_retries,
    )
