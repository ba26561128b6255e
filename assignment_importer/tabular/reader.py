from __future__ import annotations

import io
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from ..models.row_data import RawRow

"""Tabular reader for uploaded CSV / Excel files.

Both formats are read with pandas as a raw grid (header=None); the first
non-empty row becomes the header and every following row that is not entirely
blank becomes one RawRow (header -> string value). Cell values are always
strings so the validator sees the same thing regardless of the source format.
"""

__all__ = [
    "FileFormat",
    "ParseError",
    "UnsupportedFileError",
    "detect_format",
    "parse_table",
    "read_upload",
]

FileFormat = Literal["csv", "spreadsheet"]

CSV_MIME_TYPES = frozenset({"text/csv", "application/csv"})
SPREADSHEET_MIME_TYPES = frozenset({
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
})
SPREADSHEET_SUFFIXES = (".xlsx", ".xls")


class ParseError(Exception):
    """Raised when an uploaded file cannot be turned into data rows."""


class UnsupportedFileError(ParseError):
    """Raised when the upload is neither CSV nor a spreadsheet."""


def detect_format(filename: str, content_type: str | None = None) -> FileFormat:
    """Sniff the upload type from its MIME type and extension.

    Raises:
        UnsupportedFileError: for anything that is not .csv / .xlsx / .xls
    """
    name = (filename or "").strip().lower()
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in CSV_MIME_TYPES or name.endswith(".csv"):
        return "csv"
    if mime in SPREADSHEET_MIME_TYPES or name.endswith(SPREADSHEET_SUFFIXES):
        return "spreadsheet"
    raise UnsupportedFileError("Please upload a CSV or Excel file (.csv, .xlsx, .xls)")


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return ""
    # Excel は数値セルを float で返すため 2024.0 -> "2024"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _read_csv_grid(content: bytes) -> pd.DataFrame:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"CSV parsing error: file is not valid UTF-8 ({e.reason})") from e
    if not text.strip():
        raise ParseError("CSV file is empty or invalid")
    try:
        return pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError("CSV file is empty or invalid") from e
    except pd.errors.ParserError as e:
        raise ParseError(f"CSV parsing error: {e}") from e


def _read_spreadsheet_grid(content: bytes) -> pd.DataFrame:
    if not content:
        raise ParseError("Excel file is empty")
    try:
        # 先頭シートのみ対象
        return pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise ParseError(f"Failed to parse Excel file: {e}") from e


def _grid_to_rows(df: pd.DataFrame) -> list[RawRow]:
    """Apply the first non-blank row as header and build RawRows.

    Steps:
    1. Convert every cell to a string ("" for NaN / None)
    2. Drop fully blank rows (before and after the header)
    3. Header cells are stripped; blank header cells are ignored and the
       first occurrence of a duplicated header wins
    """
    grid = [[_cell_to_str(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
    grid = [cells for cells in grid if any(c.strip() for c in cells)]
    if not grid:
        raise ParseError("file is empty")

    header = [c.strip() for c in grid[0]]
    rows: list[RawRow] = []
    for cells in grid[1:]:
        row: RawRow = {}
        for col, val in zip(header, cells, strict=False):
            if not col or col in row:
                continue
            row[col] = val
        rows.append(row)

    if not rows:
        raise ParseError("file contains a header row but no data rows")
    return rows


def parse_table(content: bytes, file_format: FileFormat) -> list[RawRow]:
    """Parse an uploaded file into an ordered list of RawRow.

    Parameters
    ----------
    content: raw bytes of the upload
    file_format: "csv" or "spreadsheet" (see detect_format)

    Raises
    ------
    ParseError: empty file, no data rows, undecodable or corrupt content
    """
    if file_format == "csv":
        df = _read_csv_grid(content)
    elif file_format == "spreadsheet":
        df = _read_spreadsheet_grid(content)
    else:
        raise UnsupportedFileError(f"unsupported file format: {file_format!r}")
    return _grid_to_rows(df)


def read_upload(path: Path, content_type: str | None = None) -> list[RawRow]:
    """Read a file from disk and parse it according to its extension."""
    file_format = detect_format(path.name, content_type)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ParseError(f"cannot read {path}: {e}") from e
    return parse_table(content, file_format)
