"""
Header resolution for assignment spreadsheets.

Maps the literal headers of an uploaded file onto the fixed logical schema
used by the importer. Matching is deterministic:

- Case-insensitive. Leading/trailing whitespace stripped, inner runs of
  whitespace collapsed to one space before comparison.
- A header matches a logical column when it equals the logical name itself or
  one of its known synonyms.
- Synonym sets are disjoint, so the first match is the only match.

Public API:
  resolve_columns(headers) -> ColumnMapping
  normalize_header(header) -> str
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ..models.row_data import ColumnMapping

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Logical columns
# ---------------------------------------------------------------------------

PROJECT_NAME = "Project Name"
MENTOR_NAME = "Mentor Name"
MENTOR_EMAIL = "Mentor Email"
MENTEE_NAME = "Mentee Name"
MENTEE_EMAIL = "Mentee Email"
PROJECT_DETAILS = "Project Details"
PROJECT_STATUS = "Project Status"

REQUIRED_COLUMNS: tuple[str, ...] = (
    PROJECT_NAME,
    MENTOR_NAME,
    MENTOR_EMAIL,
    MENTEE_NAME,
    MENTEE_EMAIL,
)
OPTIONAL_COLUMNS: tuple[str, ...] = (PROJECT_DETAILS, PROJECT_STATUS)

# ---------------------------------------------------------------------------
# Synonym table (lower-cased, compared after normalize_header)
# ---------------------------------------------------------------------------
# The download template uses the logical names verbatim, so every template
# header resolves through the first entry of its set.

COLUMN_SYNONYMS: Mapping[str, frozenset[str]] = MappingProxyType({
    PROJECT_NAME: frozenset({"project name", "project_name", "projectname", "title", "project title"}),
    MENTOR_NAME: frozenset({"mentor name", "mentor_name", "mentorname", "mentor"}),
    MENTOR_EMAIL: frozenset({"mentor email", "mentor_email", "mentoremail", "mentor email address"}),
    MENTEE_NAME: frozenset({"mentee name", "mentee_name", "menteename", "mentee", "student name"}),
    MENTEE_EMAIL: frozenset({
        "mentee email", "mentee_email", "menteeemail", "mentee email address", "student email",
    }),
    PROJECT_DETAILS: frozenset({"project details", "project_details", "projectdetails"}),
    PROJECT_STATUS: frozenset({"project status", "project_status", "projectstatus"}),
})

_WS_RE = re.compile(r"\s+")


class MissingColumnsError(Exception):
    """Raised when required logical columns cannot be found in the header."""

    def __init__(self, missing: list[str], found: list[str]) -> None:
        self.missing = list(missing)
        self.found = list(found)
        super().__init__(
            f"Missing required columns: {', '.join(self.missing)}. "
            f"Found columns: {', '.join(self.found)}"
        )


def normalize_header(header: object) -> str:
    """Lower-case, strip and collapse whitespace of a raw header."""
    return _WS_RE.sub(" ", str(header).strip().lower())


def _find_header(logical: str, headers: list[str]) -> str | None:
    accepted = COLUMN_SYNONYMS[logical] | {logical.lower()}
    for header in headers:
        if normalize_header(header) in accepted:
            return header
    return None


def resolve_columns(headers: Iterable[str]) -> ColumnMapping:
    """Resolve a file's headers to the logical schema.

    Optional columns are mapped only when present. Raises MissingColumnsError
    naming every unresolved required column and all headers found.
    """
    found = [str(h) for h in headers]
    resolved: dict[str, str] = {}
    missing: list[str] = []

    for logical in REQUIRED_COLUMNS:
        header = _find_header(logical, found)
        if header is None:
            missing.append(logical)
        else:
            resolved[logical] = header

    if missing:
        raise MissingColumnsError(missing, found)

    for logical in OPTIONAL_COLUMNS:
        header = _find_header(logical, found)
        if header is not None:
            resolved[logical] = header

    renamed = {k: v for k, v in resolved.items() if v != k}
    if renamed:
        logger.info("columns resolved via synonyms: %s", renamed)
    unmatched = sorted(set(found) - set(resolved.values()))
    if unmatched:
        logger.debug("ignored columns: %s", unmatched)
    return ColumnMapping(resolved)
