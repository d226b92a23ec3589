"""Error handling utilities."""

from typing import Optional


class DistributorError(Exception):
    """Base exception for the list distributor backend."""
    status_code: int = 500
    public_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class UnsupportedFormatError(DistributorError):
    """Upload extension is not one of the accepted tabular formats."""
    status_code = 400
    public_message = "Invalid file type. Only .csv, .xlsx, or .xls are allowed."


class FileTooLargeError(DistributorError):
    """Upload exceeds the configured size ceiling."""
    status_code = 413
    public_message = "Uploaded file is too large."


class DecodeError(DistributorError):
    """File body could not be decoded into rows."""
    status_code = 400
    public_message = "Error parsing file."

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class InsufficientAgentsError(DistributorError):
    """Fewer agents registered than the roster requires."""
    status_code = 400

    def __init__(self, found: int, required: int):
        super().__init__(f"Not enough agents in system. Found {found}, require {required}.")
        self.found = found
        self.required = required


class NoValidRowsError(DistributorError):
    """Every row of the upload was rejected and empty batches are disabled."""
    status_code = 400
    public_message = "No valid rows found in file."

    def __init__(self, errors: Optional[list[str]] = None):
        super().__init__()
        self.errors = errors or []


class AuthorizationError(DistributorError):
    """Caller identity missing or not trusted."""
    status_code = 401
    public_message = "Unauthorized - no caller identity provided."


class AgentNotFoundError(DistributorError):
    """Agent identity does not resolve."""
    status_code = 404
    public_message = "Agent not found."


class DuplicateAgentError(DistributorError):
    """An agent with this e-mail already exists."""
    status_code = 409
    public_message = "An agent with this email already exists."


class PersistenceError(DistributorError):
    """Storage failed during ingestion."""
    status_code = 500


class SupabaseError(PersistenceError):
    """Supabase operation error."""
    pass
