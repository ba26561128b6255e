from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from ..db.store import AssignmentStore
from ..models.config_models import ImportSettings, UnknownMenteePolicy
from ..models.entities import Project, User
from ..models.import_report import RowOutcome, RowState
from ..models.row_data import NormalizedRow

if TYPE_CHECKING:
    from .progress import ProgressTracker

"""Entity reconciliation for validated import rows.

Rows are processed strictly in file order, one at a time, because a later row
may refer to a project created by an earlier row of the same file. Each row:

1. looks up the project by (name, coordinator), the mentor and the mentee by e-mail
2. creates the project or merges mentor / details / mentee into the existing one
3. upserts the assignment record (keyed by project) and the mentee link

Any failure is confined to its row: the row becomes FAILED with a message and
processing moves on. Nothing written by earlier rows is undone.
"""

__all__ = [
    "ReconciliationError",
    "EntityReconciler",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReconciliationError(Exception):
    """Row-scoped failure while reconciling one row."""


def _merge_ids(existing: Sequence[str], new_id: str | None) -> tuple[str, ...]:
    merged = list(existing)
    if new_id is not None:
        merged.append(new_id)
    return tuple(dict.fromkeys(merged))


class EntityReconciler:
    """Reconciles NormalizedRows against an AssignmentStore for one coordinator."""

    def __init__(
        self,
        store: AssignmentStore,
        coordinator_id: str,
        settings: ImportSettings | None = None,
    ) -> None:
        self.store = store
        self.coordinator_id = coordinator_id
        self.settings = settings or ImportSettings()

    def reconcile(self, rows: Sequence[NormalizedRow], progress: ProgressTracker | None = None) -> list[RowOutcome]:
        outcomes: list[RowOutcome] = []
        for row in rows:
            if progress is not None:
                progress.start_row(row.row_number, row.project_name)
            outcome = self.reconcile_row(row)
            outcomes.append(outcome)
            if progress is not None:
                progress.finish_row(success=outcome.succeeded)
        return outcomes

    @staticmethod
    def _call(message: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            raise ReconciliationError(f"{message}: {e}") from e

    def reconcile_row(self, row: NormalizedRow) -> RowOutcome:
        """Run one row through the state machine; never raises."""
        state = RowState.PENDING
        mentor: User | None = None
        mentee: User | None = None
        try:
            state = RowState.RESOLVING
            existing = self._call(
                "Failed to check existing project",
                self.store.find_project,
                row.project_name,
                self.coordinator_id,
            )
            mentor = self._call("Failed to lookup mentor", self.store.find_user_by_email, row.mentor_email)
            mentee = self._call("Failed to lookup mentee", self.store.find_user_by_email, row.mentee_email)

            if mentee is None and self.settings.unknown_mentee_policy is UnknownMenteePolicy.REJECT:
                raise ReconciliationError(f"Mentee not found - {row.mentee_email}")

            if existing is None:
                state = RowState.CREATING_PROJECT
                project = self._create_project(row, mentor, mentee)
            else:
                state = RowState.UPDATING_PROJECT
                project = self._update_project(existing, row, mentor, mentee)

            state = RowState.WRITING_ASSIGNMENT
            assignment = self._call(
                "Failed to create assignment record",
                self.store.upsert_assignment,
                project_id=project.id,
                project_name=row.project_name,
                mentor_id=mentor.id if mentor else None,
                mentor_name=row.mentor_name,
                mentor_email=row.mentor_email,
                created_by=self.coordinator_id,
                status=row.project_status,
            )

            state = RowState.WRITING_MENTEE_LINKS
            self._call(
                "Failed to create mentee assignment",
                self.store.upsert_assignment_mentee,
                assignment_id=assignment.id,
                mentee_id=mentee.id if mentee else None,
                mentee_name=row.mentee_name,
                mentee_email=row.mentee_email,
            )
        except ReconciliationError as e:
            message = f"Row {row.row_number}: {e}"
            logger.warning("%s (state=%s)", message, state.value)
            return RowOutcome(
                row_number=row.row_number,
                state=RowState.FAILED,
                mentor=mentor,
                mentee=mentee,
                mentee_email=row.mentee_email,
                error=message,
            )

        if mentee is None:
            logger.info("row=%d mentee %s has no account yet; linked by e-mail", row.row_number, row.mentee_email)
        logger.debug(
            "row=%d project=%s %s", row.row_number, project.id, "created" if existing is None else "updated"
        )
        return RowOutcome(
            row_number=row.row_number,
            state=RowState.SUCCEEDED,
            project=project,
            project_created=existing is None,
            mentor=mentor,
            mentee=mentee,
            mentee_email=row.mentee_email,
        )

    def _create_project(self, row: NormalizedRow, mentor: User | None, mentee: User | None) -> Project:
        return self._call(
            "Failed to create project",
            self.store.create_project,
            project_name=row.project_name,
            project_details=row.project_details or self.settings.default_project_details,
            mentor_id=mentor.id if mentor else None,
            mentor_email=row.mentor_email,
            mentees=_merge_ids((), mentee.id if mentee else None),
            assigned_by=self.coordinator_id,
        )

    def _update_project(
        self, existing: Project, row: NormalizedRow, mentor: User | None, mentee: User | None
    ) -> Project:
        changes: dict[str, Any] = {}
        if row.project_details and row.project_details != existing.project_details:
            changes["project_details"] = row.project_details
        # mentor 情報はアカウントが見つかった場合のみ上書き
        if mentor is not None and (existing.mentor_id, existing.mentor_email) != (mentor.id, row.mentor_email):
            changes["mentor_id"] = mentor.id
            changes["mentor_email"] = row.mentor_email
        mentees = _merge_ids(existing.mentees, mentee.id if mentee else None)
        if mentees != tuple(existing.mentees):
            changes["mentees"] = mentees
        if not changes:
            return existing
        return self._call("Failed to update project", self.store.update_project, existing.id, **changes)
