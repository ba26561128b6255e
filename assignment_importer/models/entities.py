from __future__ import annotations

from dataclasses import dataclass

"""Durable entities owned by the identity/row store.

The importer only reads users; projects, assignments and mentee links are
created or updated through an AssignmentStore implementation.
"""

__all__ = [
    "User",
    "Project",
    "Assignment",
    "AssignmentMentee",
]


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: str | None = None  # mentor / mentee / project_coordinator / hod


@dataclass(frozen=True)
class Project:
    """A project owned by the coordinator that assigned it.

    Uniqueness for "already exists" checks is (project_name, assigned_by),
    not the name alone.
    """
    id: str
    project_name: str
    project_details: str
    mentor_id: str | None
    mentor_email: str | None
    mentees: tuple[str, ...]  # user ids, duplicate-free
    assigned_by: str


@dataclass(frozen=True)
class Assignment:
    """Assignment record, one per project.

    project_name / mentor_name are snapshots taken at import time so the
    dashboard still shows them if the referenced user is renamed later.
    """
    id: str
    project_id: str
    project_name: str
    mentor_id: str | None
    mentor_name: str
    mentor_email: str
    created_by: str
    status: str = "pending"
    duration: str | None = None


@dataclass(frozen=True)
class AssignmentMentee:
    id: str
    assignment_id: str
    mentee_id: str | None  # None until the mentee account exists
    mentee_name: str
    mentee_email: str
