"""List upload endpoint: parse a CSV/Excel file and distribute its rows to agents."""

from http.server import BaseHTTPRequestHandler

from src.services.caller_identity import resolve_caller
from src.services.list_ingestor import ingest_upload
from src.utils.config import get_settings
from src.utils.errors import DistributorError, FileTooLargeError
from src.utils.http import (
    INTERNAL_ERROR_MESSAGE,
    content_length,
    correlation_id_from,
    is_multipart,
    read_multipart_file,
    run_async,
    send_error,
    send_json,
)
from src.utils.logging import correlation_context, get_structured_logger, mask_user_id
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

# Allowance for multipart boundaries and part headers on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


class handler(BaseHTTPRequestHandler):
    """Serverless function handler for list uploads."""

    def do_POST(self):
        """Handle multipart upload with a single file field."""
        with correlation_context(correlation_id_from(self)):
            try:
                settings = get_settings()
                uploader_id = resolve_caller(self.headers, settings)

                content_type = self.headers.get('Content-Type', '')
                if not is_multipart(content_type):
                    send_json(self, 400, {"success": False, "message": "Expected multipart/form-data upload."})
                    return

                if content_length(self) > settings.max_file_bytes + MULTIPART_OVERHEAD_BYTES:
                    raise FileTooLargeError(
                        f"Uploaded file is too large. Limit is {settings.max_file_bytes} bytes."
                    )

                upload = read_multipart_file(self, settings.upload_field, settings.max_file_bytes)
                if upload is None:
                    send_json(self, 400, {"success": False, "message": "No file uploaded."})
                    return

                result = run_async(ingest_upload(upload, uploader_id, settings))
                send_json(self, 201, result.to_response())
                logger.info(
                    "List upload processed",
                    batch_id=result.batch.batch_id,
                    uploaded_by=mask_user_id(uploader_id),
                    accepted_count=result.accepted_count,
                    rejected_count=len(result.rejections),
                )

            except DistributorError as e:
                if e.is_client_error:
                    logger.warning("List upload refused", status_code=e.status_code, reason=e.message)
                else:
                    logger.error("List upload failed", error=str(e), exc_info=True)
                send_error(self, e)
            except Exception as e:
                logger.error("Error in list upload", error=str(e), exc_info=True)
                send_json(self, 500, {"success": False, "message": INTERNAL_ERROR_MESSAGE})
