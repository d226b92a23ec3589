"""Row validator - map raw decoded rows to ValidatedRow or a RowRejection."""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from src.models.ingestion import RowRejection, ValidatedRow
from src.services.tabular_decoder import RawRow
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

FIRST_NAME_HEADER = "FirstName"
PHONE_HEADER = "Phone"
NOTES_HEADER = "Notes"

# Header row occupies row 1; first data row is row 2.
HEADER_ROW_OFFSET = 2


def to_text(value: Any) -> Optional[str]:
    """Render a decoded cell as text, keeping numbers in their displayed form.

    Integral floats (how .xls stores every number) lose the trailing '.0' so
    919876543210.0 becomes '919876543210'. Leading zeros already dropped by a
    spreadsheet engine cannot be recovered here.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return str(value.normalize())
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def row_number_for(index: int) -> int:
    """Spreadsheet-visual row number for the zero-based data row index."""
    return index + HEADER_ROW_OFFSET


def validate_row(raw: RawRow, index: int) -> Union[ValidatedRow, RowRejection]:
    """Validate one raw row. Never raises for bad data; returns a rejection instead."""
    row_number = row_number_for(index)

    first_name = to_text(raw.get(FIRST_NAME_HEADER))
    if not first_name:
        return RowRejection(row_number=row_number, reason="FirstName is required")

    phone = to_text(raw.get(PHONE_HEADER))
    if not phone:
        return RowRejection(row_number=row_number, reason="Phone is required")

    notes = to_text(raw.get(NOTES_HEADER)) or ""

    return ValidatedRow(
        first_name=first_name,
        phone=phone,
        notes=notes,
        source_row=row_number,
    )


def validate_rows(rows: Iterable[RawRow]) -> tuple[list[ValidatedRow], list[RowRejection]]:
    """Validate every row independently, keeping file order for both outputs."""
    accepted: list[ValidatedRow] = []
    rejected: list[RowRejection] = []

    for index, raw in enumerate(rows):
        outcome = validate_row(raw, index)
        if isinstance(outcome, RowRejection):
            rejected.append(outcome)
            logger.debug(
                "Row rejected",
                row_number=outcome.row_number,
                reason=outcome.reason,
                present_columns=sorted(k for k, v in raw.items() if v not in (None, "")),
            )
        else:
            accepted.append(outcome)

    logger.info(
        "Rows validated",
        accepted_count=len(accepted),
        rejected_count=len(rejected),
    )
    return accepted, rejected
