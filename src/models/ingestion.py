"""Models flowing through list ingestion: upload, validated rows, assignments, result."""

from typing import Union
from pydantic import BaseModel, Field

from src.models.upload_batch import UploadBatch


NO_ERRORS = "No errors."


class UploadedFile(BaseModel):
    """Raw upload as received from the client."""
    file_name: str = Field(..., description="Original file name including extension")
    content: bytes = Field(..., repr=False, description="File payload")

    @property
    def size(self) -> int:
        return len(self.content)


class ValidatedRow(BaseModel):
    """A row that passed validation, ready for allocation."""
    first_name: str
    phone: str
    notes: str = ""
    source_row: int = Field(..., ge=2, description="Spreadsheet-visual row number")


class RowRejection(BaseModel):
    """A row dropped during validation and why."""
    row_number: int = Field(..., ge=2)
    reason: str

    @property
    def message(self) -> str:
        return f"Row {self.row_number}: {self.reason}"


class Assignment(BaseModel):
    """A validated row paired with the roster agent that owns it."""
    row: ValidatedRow
    agent_id: str
    roster_index: int = Field(..., ge=0)


class IngestionResult(BaseModel):
    """Outcome of one upload."""
    batch: UploadBatch
    accepted_count: int = Field(..., ge=0)
    rejections: list[RowRejection] = Field(default_factory=list)

    @property
    def errors(self) -> Union[list[str], str]:
        if not self.rejections:
            return NO_ERRORS
        return [rejection.message for rejection in self.rejections]

    def to_response(self) -> dict:
        return {
            "success": True,
            "message": f"File uploaded successfully. {self.accepted_count} tasks distributed.",
            "newBatch": self.batch.to_response(),
            "errors": self.errors,
        }
