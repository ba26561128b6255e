from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from ..models.entities import Assignment, AssignmentMentee, Project, User

"""Identity / row store interface consumed by the importer.

The importer assumes every call is atomic on its own but never relies on a
transaction spanning several calls: a row that fails half way keeps whatever
earlier calls already wrote.

Implementations:
- db.postgres_store.PostgresStore  (psycopg2, live mode)
- db.memory_store.InMemoryStore    (dry-run / tests)
"""

__all__ = [
    "StoreError",
    "AssignmentStore",
    "PROJECT_UPDATABLE_FIELDS",
]

PROJECT_UPDATABLE_FIELDS = frozenset({"project_details", "mentor_id", "mentor_email", "mentees"})


class StoreError(Exception):
    """Raised by store implementations when a lookup or write fails."""


class AssignmentStore(Protocol):
    # --- users (read only) ---
    def find_user_by_email(self, email: str) -> User | None: ...

    def find_users_by_emails(self, emails: Sequence[str]) -> list[User]: ...

    def find_users_by_ids(self, ids: Sequence[str]) -> list[User]: ...

    # --- projects ---
    def find_project(self, project_name: str, assigned_by: str) -> Project | None: ...

    def list_projects(self, assigned_by: str) -> list[Project]: ...

    def create_project(
        self,
        *,
        project_name: str,
        project_details: str,
        mentor_id: str | None,
        mentor_email: str | None,
        mentees: Sequence[str],
        assigned_by: str,
    ) -> Project: ...

    def update_project(self, project_id: str, **changes: object) -> Project: ...

    # --- assignments ---
    def upsert_assignment(
        self,
        *,
        project_id: str,
        project_name: str,
        mentor_id: str | None,
        mentor_name: str,
        mentor_email: str,
        created_by: str,
        status: str = "pending",
        duration: str | None = None,
    ) -> Assignment: ...

    def find_assignment(self, project_id: str) -> Assignment | None: ...

    def upsert_assignment_mentee(
        self,
        *,
        assignment_id: str,
        mentee_id: str | None,
        mentee_name: str,
        mentee_email: str,
    ) -> AssignmentMentee: ...

    def list_assignment_mentees(self, assignment_id: str) -> list[AssignmentMentee]: ...
