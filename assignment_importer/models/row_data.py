from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

"""Row-level models for the import pipeline.

RawRow is what the tabular reader produces (literal header -> string value),
ColumnMapping binds logical columns to the literal headers of one file and
NormalizedRow is the canonical unit the validator hands to the reconciler.
All of them live only for the duration of one import call.
"""

__all__ = [
    "RawRow",
    "ColumnMapping",
    "NormalizedRow",
]

RawRow = dict[str, str]


class ColumnMapping(Mapping[str, str]):
    """Immutable mapping logical column -> header found in the file."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, str]) -> None:
        self._data = dict(data)

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ColumnMapping({self._data!r})"

    def value(self, row: RawRow, logical: str) -> str:
        """Stripped cell value of a logical column, "" if absent."""
        header = self._data.get(logical)
        if header is None:
            return ""
        raw = row.get(header)
        if raw is None:
            return ""
        return str(raw).strip()


@dataclass(frozen=True)
class NormalizedRow:
    """Logical representation of one valid input row.

    row_number is the 1-based data row position in the file (header excluded)
    and is what every error/warning message refers to.
    """
    row_number: int
    project_name: str
    mentor_name: str
    mentor_email: str  # lower-cased
    mentee_name: str
    mentee_email: str  # lower-cased
    project_details: str = ""
    project_status: str = "pending"
    warnings: list[str] = field(default_factory=list)
