from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.entities import Project
from ..models.import_report import ImportReport, RowOutcome
from .validator import ValidationResult

"""Fold reconciler outcomes into an ImportReport. No I/O."""


def aggregate(
    outcomes: Sequence[RowOutcome],
    validation: ValidationResult,
    elapsed_seconds: float = 0.0,
) -> ImportReport:
    """Build the final report.

    created_projects / updated_projects hold each project once, with the
    snapshot left by the last row that touched it. A project created by this
    import is listed as created even if later rows of the file updated it.
    """
    created: dict[str, Project] = {}
    updated: dict[str, Project] = {}
    assigned_mentors: list[dict[str, Any]] = []
    assigned_mentees: list[dict[str, Any]] = []
    row_errors: list[str] = []
    success = failed = 0

    for outcome in outcomes:
        if not outcome.succeeded or outcome.project is None:
            failed += 1
            if outcome.error:
                row_errors.append(outcome.error)
            continue

        success += 1
        project = outcome.project
        if outcome.project_created or project.id in created:
            created[project.id] = project
        else:
            updated[project.id] = project

        if outcome.mentor is not None:
            assigned_mentors.append({"project_id": project.id, "mentor": outcome.mentor, "row": outcome.row_number})
        assigned_mentees.append(
            {
                "project_id": project.id,
                "mentee": outcome.mentee,
                "mentee_email": outcome.mentee_email,
                "row": outcome.row_number,
            }
        )

    return ImportReport(
        success=success,
        failed=failed,
        errors=list(validation.errors) + row_errors,
        warnings=list(validation.warnings),
        created_projects=list(created.values()),
        updated_projects=list(updated.values()),
        assigned_mentors=assigned_mentors,
        assigned_mentees=assigned_mentees,
        total_rows=validation.total_rows,
        skipped_rows=validation.skipped_rows,
        elapsed_seconds=elapsed_seconds,
        outcomes=list(outcomes),
    )
