"""Reading uploaded CSV / Excel files and resolving their headers."""

from .headers import MissingColumnsError, resolve_columns
from .reader import ParseError, UnsupportedFileError, detect_format, parse_table, read_upload

__all__ = [
    "MissingColumnsError",
    "ParseError",
    "UnsupportedFileError",
    "detect_format",
    "parse_table",
    "read_upload",
    "resolve_columns",
]
