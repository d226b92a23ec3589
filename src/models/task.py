"""Task models."""

from typing import Optional
from pydantic import BaseModel, Field


class Task(BaseModel):
    """One distributable unit of work derived from a validated row."""
    task_id: str = Field(..., description="Task ID (ULID text)")
    first_name: str = Field(..., min_length=1, description="Contact first name")
    phone: str = Field(..., description="Contact phone, kept as text")
    notes: str = Field(default="", description="Free-text note")
    agent_id: str = Field(..., description="Assigned agent ID (text FK)")
    batch_id: str = Field(..., description="Upload batch ID (text FK)")
    source_row: Optional[int] = Field(None, ge=2, description="Row number in the uploaded file")
    created_at: Optional[str] = None


class BatchProvenance(BaseModel):
    """Batch fields joined onto a task on the read path."""
    file_name: str
    created_at: Optional[str] = None
    finalized_at: Optional[str] = None


class AgentTaskView(Task):
    """Task enriched with the owning batch's provenance."""
    batch: Optional[BatchProvenance] = None

    def to_response(self) -> dict:
        return {
            "id": self.task_id,
            "firstName": self.first_name,
            "phone": self.phone,
            "notes": self.notes,
            "batch": {
                "fileName": self.batch.file_name,
                "createdAt": self.batch.created_at,
            } if self.batch else None,
        }
