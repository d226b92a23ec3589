"""Tabular decoder - turn an uploaded CSV/Excel payload into header->value row mappings."""

import csv
import io
import os
from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Optional

import openpyxl
import xlrd

from src.utils.errors import DecodeError, UnsupportedFormatError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

RawRow = dict[str, Any]


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, or '' when there is none."""
    return os.path.splitext(file_name or "")[1].lower()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _rows_from_grid(grid: Iterable[tuple], source: str) -> Iterator[RawRow]:
    """Map a grid of cell tuples to dicts keyed by the trimmed first row."""
    grid = iter(grid)
    header_cells = next(grid, None)
    if header_cells is None:
        return

    headers: list[Optional[str]] = [
        None if _is_blank(cell) else str(cell).strip() for cell in header_cells
    ]
    logger.debug("Decoded header row", source=source, columns=[h for h in headers if h])

    for cells in grid:
        if all(_is_blank(cell) for cell in cells):
            continue
        row = {}
        for header, cell in zip(headers, cells):
            if header is not None:
                row[header] = cell
        yield row


class TabularDecoder(ABC):
    """Capability: decode(bytes) -> row sequence."""

    format_name = "tabular"

    @abstractmethod
    def decode(self, payload: bytes) -> Iterator[RawRow]:
        """Yield header-keyed rows; parser failures surface as DecodeError."""


class CsvDecoder(TabularDecoder):
    """Delimited text; values stay as strings."""

    format_name = "csv"

    def decode(self, payload: bytes) -> Iterator[RawRow]:
        stream = io.TextIOWrapper(io.BytesIO(payload), encoding="utf-8-sig", newline="")
        try:
            reader = csv.reader(stream, strict=True)
            yield from _rows_from_grid(reader, self.format_name)
        except (csv.Error, UnicodeDecodeError) as e:
            raise DecodeError(cause=e) from e
        finally:
            stream.close()


class XlsxDecoder(TabularDecoder):
    """Office Open XML workbook, first sheet only."""

    format_name = "xlsx"

    def decode(self, payload: bytes) -> Iterator[RawRow]:
        try:
            workbook = openpyxl.load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
        except Exception as e:
            raise DecodeError(cause=e) from e

        try:
            if not workbook.worksheets:
                return
            sheet = workbook.worksheets[0]
            yield from _rows_from_grid(sheet.iter_rows(values_only=True), self.format_name)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(cause=e) from e
        finally:
            workbook.close()


class XlsDecoder(TabularDecoder):
    """Legacy BIFF workbook, first sheet only."""

    format_name = "xls"

    def decode(self, payload: bytes) -> Iterator[RawRow]:
        try:
            book = xlrd.open_workbook(file_contents=payload, on_demand=True)
        except Exception as e:
            raise DecodeError(cause=e) from e

        try:
            if book.nsheets == 0:
                return
            sheet = book.sheet_by_index(0)
            grid = (
                tuple(self._cell_value(cell, book.datemode) for cell in sheet.row(index))
                for index in range(sheet.nrows)
            )
            yield from _rows_from_grid(grid, self.format_name)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(cause=e) from e
        finally:
            book.release_resources()

    @staticmethod
    def _cell_value(cell, datemode: int) -> Any:
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return None
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        if cell.ctype == xlrd.XL_CELL_DATE:
            return xlrd.xldate_as_datetime(cell.value, datemode)
        if cell.ctype == xlrd.XL_CELL_ERROR:
            return None
        return cell.value


# Extension -> decoder. Content sniffing could replace this lookup later.
DECODERS: dict[str, TabularDecoder] = {
    ".csv": CsvDecoder(),
    ".xlsx": XlsxDecoder(),
    ".xls": XlsDecoder(),
}


def detect_decoder(file_name: str) -> TabularDecoder:
    """Pick a decoder from the file name's extension (case-insensitive)."""
    ext = file_extension(file_name)
    decoder = DECODERS.get(ext)
    if decoder is None:
        raise UnsupportedFormatError()
    return decoder


def decode_rows(payload: bytes, file_name: str) -> Iterator[RawRow]:
    """Lazily decode a payload into row mappings.

    Errors surface as DecodeError while iterating; callers that need
    all-or-nothing semantics must consume the iterator before acting on it.
    """
    decoder = detect_decoder(file_name)
    logger.debug("Decoding upload", decoder=decoder.format_name, payload_bytes=len(payload))
    return decoder.decode(payload)
