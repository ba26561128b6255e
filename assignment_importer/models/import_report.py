from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .entities import Project, User

"""Per-row outcomes and the aggregated import report.

RowOutcome is produced by the reconciler for every valid row; ImportReport is
the fold of those outcomes plus the validator's errors/warnings.
"""

__all__ = [
    "RowState",
    "RowOutcome",
    "ImportReport",
]


class RowState(Enum):
    """Lifecycle of one row inside the reconciler.

    State transitions:
    pending → resolving → (creating_project | updating_project)
            → writing_assignment → writing_mentee_links → succeeded
    Any state may transition to failed. succeeded / failed are terminal.
    """
    PENDING = "pending"
    RESOLVING = "resolving"
    CREATING_PROJECT = "creating_project"
    UPDATING_PROJECT = "updating_project"
    WRITING_ASSIGNMENT = "writing_assignment"
    WRITING_MENTEE_LINKS = "writing_mentee_links"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (RowState.SUCCEEDED, RowState.FAILED)


@dataclass(frozen=True)
class RowOutcome:
    """Result of reconciling one NormalizedRow."""
    row_number: int
    state: RowState
    project: Project | None = None
    project_created: bool = False
    mentor: User | None = None
    mentee: User | None = None
    mentee_email: str | None = None
    error: str | None = None  # "Row {n}: ..." when state is FAILED

    @property
    def succeeded(self) -> bool:
        return self.state is RowState.SUCCEEDED


@dataclass(frozen=True)
class ImportReport:
    """Aggregated result handed back to the caller of one import.

    success + failed always equals the number of valid rows; rows rejected by
    validation are counted in skipped_rows and reported in errors.
    """
    success: int
    failed: int
    errors: list[str]
    warnings: list[str]
    created_projects: list[Project]
    updated_projects: list[Project]
    assigned_mentors: list[dict[str, Any]]  # {"project_id", "mentor", "row"}
    assigned_mentees: list[dict[str, Any]]  # {"project_id", "mentee", "mentee_email", "row"}
    total_rows: int = 0
    skipped_rows: int = 0
    elapsed_seconds: float = 0.0
    outcomes: list[RowOutcome] = field(default_factory=list)

    @property
    def valid_rows(self) -> int:
        return self.success + self.failed

    @property
    def has_failures(self) -> bool:
        return self.failed > 0 or self.skipped_rows > 0
