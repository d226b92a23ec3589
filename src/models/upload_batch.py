"""UploadBatch model - one file upload and everything it produced."""

from typing import Optional
from pydantic import BaseModel, Field


class UploadBatch(BaseModel):
    """Upload batch ledger entry."""
    batch_id: str = Field(..., description="Batch ID (ULID text)")
    file_name: str = Field(..., description="Original uploaded file name")
    uploaded_by: str = Field(..., description="Identity of the uploading admin")
    total_tasks: int = Field(default=0, ge=0, description="Tasks persisted for this batch")
    finalized_at: Optional[str] = Field(None, description="Set once total_tasks is final")
    created_at: Optional[str] = None

    @property
    def is_finalized(self) -> bool:
        return self.finalized_at is not None

    def to_response(self) -> dict:
        return {
            "id": self.batch_id,
            "fileName": self.file_name,
            "totalTasks": self.total_tasks,
            "uploadedBy": self.uploaded_by,
            "createdAt": self.created_at,
        }
