from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.row_data import ColumnMapping, NormalizedRow, RawRow
from ..tabular.headers import (
    MENTEE_EMAIL,
    MENTEE_NAME,
    MENTOR_EMAIL,
    MENTOR_NAME,
    PROJECT_DETAILS,
    PROJECT_NAME,
    PROJECT_STATUS,
    REQUIRED_COLUMNS,
)

"""Row validation for assignment imports.

Each raw row is checked independently; a failing row is excluded from the
valid set and reported once (all of its problems joined in one message).
Duplicate project names inside the file only produce a warning.
"""

__all__ = [
    "EMAIL_RE",
    "DUPLICATE_PROJECT_WARNING",
    "ValidationResult",
    "is_valid_email",
    "validate_rows",
]

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DUPLICATE_PROJECT_WARNING = "Duplicate project name in CSV"


@dataclass(frozen=True)
class ValidationResult:
    valid_rows: list[NormalizedRow]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_rows: int = 0
    invalid_rows: list[int] = field(default_factory=list)  # row numbers, parallel to errors

    @property
    def skipped_rows(self) -> int:
        return self.total_rows - len(self.valid_rows)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def validate_rows(
    rows: Sequence[RawRow],
    mapping: ColumnMapping,
    *,
    default_status: str = "pending",
) -> ValidationResult:
    """Validate and normalize raw rows.

    For row n (1-based):
    - blank required value -> "{column} is required"
    - non-blank mentor/mentee email not matching EMAIL_RE -> "Invalid ... Email format"
    - project name already seen in an earlier row (trimmed, case-insensitive)
      -> warning "Row n: Duplicate project name in CSV", row still valid
    """
    valid_rows: list[NormalizedRow] = []
    errors: list[str] = []
    warnings: list[str] = []
    invalid_rows: list[int] = []
    seen_projects: set[str] = set()

    for index, raw in enumerate(rows, start=1):
        values = {col: mapping.value(raw, col) for col in REQUIRED_COLUMNS}
        row_errors = [f"{col} is required" for col in REQUIRED_COLUMNS if not values[col]]
        row_warnings: list[str] = []

        for col, label in ((MENTOR_EMAIL, "Mentor Email"), (MENTEE_EMAIL, "Mentee Email")):
            if values[col] and not is_valid_email(values[col]):
                row_errors.append(f"Invalid {label} format")

        # 重複判定は無効行も含めた「それ以前の全行」が対象
        project_key = values[PROJECT_NAME].lower()
        if project_key:
            if project_key in seen_projects:
                row_warnings.append(DUPLICATE_PROJECT_WARNING)
            seen_projects.add(project_key)

        if row_errors:
            message = f"Row {index}: {', '.join(row_errors)}"
            errors.append(message)
            invalid_rows.append(index)
            logger.debug("excluded %s", message)
            continue

        if row_warnings:
            warnings.append(f"Row {index}: {', '.join(row_warnings)}")

        valid_rows.append(
            NormalizedRow(
                row_number=index,
                project_name=values[PROJECT_NAME],
                mentor_name=values[MENTOR_NAME],
                mentor_email=values[MENTOR_EMAIL].lower(),
                mentee_name=values[MENTEE_NAME],
                mentee_email=values[MENTEE_EMAIL].lower(),
                project_details=mapping.value(raw, PROJECT_DETAILS),
                project_status=mapping.value(raw, PROJECT_STATUS) or default_status,
                warnings=row_warnings,
            )
        )

    logger.info(
        "validated rows total=%d valid=%d errors=%d warnings=%d",
        len(rows),
        len(valid_rows),
        len(errors),
        len(warnings),
    )
    return ValidationResult(
        valid_rows=valid_rows,
        errors=errors,
        warnings=warnings,
        total_rows=len(rows),
        invalid_rows=invalid_rows,
    )
