"""Upload payload fixtures: CSV text, openpyxl-built workbooks and BIFF8 .xls files."""

import io
import struct
from typing import Any, Iterable, Sequence

from openpyxl import Workbook

HEADERS = ("FirstName", "Phone", "Notes")


def csv_bytes(rows: Iterable[Sequence[Any]], headers: Sequence[str] = HEADERS) -> bytes:
    """Render rows as simple comma-separated text (values must not need quoting)."""
    lines = [",".join(headers)]
    lines.extend(",".join("" if v is None else str(v) for v in row) for row in rows)
    return ("\n".join(lines) + "\n").encode("utf-8")


def xlsx_bytes(
    rows: Iterable[Sequence[Any]],
    headers: Sequence[str] = HEADERS,
    extra_sheets: Sequence[str] = (),
) -> bytes:
    """Workbook whose first sheet holds headers + rows."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Contacts"
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))
    for title in extra_sheets:
        extra = workbook.create_sheet(title)
        extra.append(["FirstName", "Phone"])
        extra.append(["ShouldNotAppear", "000"])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
OLE_SECTOR = 512
OLE_MIN_STANDARD_STREAM = 4096
OLE_FREE, OLE_END_OF_CHAIN, OLE_SAT_SECTOR = -1, -2, -3


def _biff_record(code: int, data: bytes = b"") -> bytes:
    return struct.pack("<HH", code, len(data)) + data


def _biff_bof(stream_type: int) -> bytes:
    # BIFF8, build 3515, 1996
    return _biff_record(0x0809, struct.pack("<HHHHII", 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 0x06))


def _biff_cell(row: int, col: int, value: Any) -> bytes:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _biff_record(0x0203, struct.pack("<HHHd", row, col, 0, float(value)))
    text = str(value)
    encoded = text.encode("utf-16-le")
    return _biff_record(0x0204, struct.pack("<HHHHB", row, col, 0, len(encoded) // 2, 0x01) + encoded)


def _ole_directory_entry(name: str, entry_type: int, child: int, first_sector: int, size: int) -> bytes:
    encoded = (name + "\0").encode("utf-16-le") if name else b""
    return (
        encoded.ljust(64, b"\0")
        + struct.pack("<HBBiii", len(encoded), entry_type, 1, -1, -1, child)
        + b"\0" * 36
        + struct.pack("<iiI", first_sector, size, 0)
    )


def xls_bytes(rows: Iterable[Sequence[Any]], headers: Sequence[str] = HEADERS, sheet_name: str = "Contacts") -> bytes:
    """Legacy Excel 97 workbook: one worksheet of LABEL/NUMBER cells in an OLE2 container.

    Strings are stored as text cells, ints and floats as numeric cells, None and
    '' leave the cell empty.
    """
    cells = b""
    grid = [list(headers)] + [list(row) for row in rows]
    for row_index, row in enumerate(grid):
        for col_index, value in enumerate(row):
            if value is None or value == "":
                continue
            cells += _biff_cell(row_index, col_index, value)
    ncols = max((len(row) for row in grid), default=0)
    sheet = (
        _biff_bof(0x0010)
        + _biff_record(0x0200, struct.pack("<IIHHH", 0, len(grid), 0, ncols, 0))
        + cells
        + _biff_record(0x000A)
    )

    name = sheet_name.encode("latin-1")
    boundsheet_length = 4 + 8 + len(name)
    globals_length = len(_biff_bof(0x0005)) + len(_biff_record(0x0042, b"\0\0")) + boundsheet_length + 4
    workbook = (
        _biff_bof(0x0005)
        + _biff_record(0x0042, struct.pack("<H", 1200))
        + _biff_record(0x0085, struct.pack("<iBBBB", globals_length, 0, 0, len(name), 0) + name)
        + _biff_record(0x000A)
        + sheet
    )

    # Streams under the standard-stream cutoff would live in the mini stream.
    padded = max(OLE_MIN_STANDARD_STREAM, -(-len(workbook) // OLE_SECTOR) * OLE_SECTOR)
    workbook = workbook.ljust(padded, b"\0")
    stream_sectors = padded // OLE_SECTOR

    # Sector 0 holds the allocation table, sector 1 the directory, the rest the workbook.
    sat = [OLE_SAT_SECTOR, OLE_END_OF_CHAIN]
    sat += [2 + i + 1 for i in range(stream_sectors - 1)] + [OLE_END_OF_CHAIN]
    sat += [OLE_FREE] * (OLE_SECTOR // 4 - len(sat))
    directory = (
        _ole_directory_entry("Root Entry", 5, 1, OLE_END_OF_CHAIN, 0)
        + _ole_directory_entry("Workbook", 2, -1, 2, padded)
        + _ole_directory_entry("", 0, -1, OLE_FREE, 0) * 2
    )
    header = (
        OLE_SIGNATURE
        + b"\0" * 16
        + struct.pack("<HHHHH", 0x003E, 0x0003, 0xFFFE, 9, 6)
        + b"\0" * 10
        + struct.pack("<iiiiiiii", 1, 1, 0, OLE_MIN_STANDARD_STREAM, OLE_END_OF_CHAIN, 0, OLE_END_OF_CHAIN, 0)
        + struct.pack("<109i", 0, *([OLE_FREE] * 108))
    )
    return header + struct.pack(f"<{len(sat)}i", *sat) + directory + workbook


def contact_rows(count: int) -> list[tuple]:
    return [(f"Contact{i}", f"91987654{i:04d}", f"note {i}") for i in range(count)]
