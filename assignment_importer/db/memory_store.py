from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import replace

from ..models.entities import Assignment, AssignmentMentee, Project, User
from .store import PROJECT_UPDATABLE_FIELDS, StoreError

"""In-memory AssignmentStore.

Used by the CLI in dry-run mode (DISABLE_DB_CONNECT=1 / --dry-run) and by the
test-suite. Semantics mirror PostgresStore: e-mail and project-name lookups are
case-insensitive, assignments are unique per project and mentee links unique
per (assignment, mentee e-mail).
"""

__all__ = [
    "InMemoryStore",
]


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryStore:
    def __init__(self, users: Sequence[User] | None = None) -> None:
        self.users: dict[str, User] = {}
        self.projects: dict[str, Project] = {}
        self.assignments: dict[str, Assignment] = {}  # project_id -> Assignment
        self.assignment_mentees: dict[tuple[str, str], AssignmentMentee] = {}
        for user in users or ():
            self.users[user.id] = user

    def add_user(self, name: str, email: str, role: str | None = None, user_id: str | None = None) -> User:
        user = User(id=user_id or _new_id(), name=name, email=email.lower(), role=role)
        self.users[user.id] = user
        return user

    # --- users ---
    def find_user_by_email(self, email: str) -> User | None:
        key = email.strip().lower()
        for user in self.users.values():
            if user.email.lower() == key:
                return user
        return None

    def find_users_by_emails(self, emails: Sequence[str]) -> list[User]:
        keys = {e.strip().lower() for e in emails}
        return [u for u in self.users.values() if u.email.lower() in keys]

    def find_users_by_ids(self, ids: Sequence[str]) -> list[User]:
        return [self.users[i] for i in dict.fromkeys(ids) if i in self.users]

    # --- projects ---
    def find_project(self, project_name: str, assigned_by: str) -> Project | None:
        key = project_name.strip().lower()
        for project in self.projects.values():
            if project.assigned_by == assigned_by and project.project_name.strip().lower() == key:
                return project
        return None

    def list_projects(self, assigned_by: str) -> list[Project]:
        return [p for p in self.projects.values() if p.assigned_by == assigned_by]

    def create_project(
        self,
        *,
        project_name: str,
        project_details: str,
        mentor_id: str | None,
        mentor_email: str | None,
        mentees: Sequence[str],
        assigned_by: str,
    ) -> Project:
        project = Project(
            id=_new_id(),
            project_name=project_name,
            project_details=project_details,
            mentor_id=mentor_id,
            mentor_email=mentor_email,
            mentees=tuple(mentees),
            assigned_by=assigned_by,
        )
        self.projects[project.id] = project
        return project

    def update_project(self, project_id: str, **changes: object) -> Project:
        if project_id not in self.projects:
            raise StoreError(f"project not found: {project_id}")
        unknown = set(changes) - PROJECT_UPDATABLE_FIELDS
        if unknown:
            raise StoreError(f"cannot update project fields: {sorted(unknown)}")
        if "mentees" in changes:
            changes["mentees"] = tuple(changes["mentees"])  # type: ignore[arg-type]
        project = replace(self.projects[project_id], **changes)  # type: ignore[arg-type]
        self.projects[project_id] = project
        return project

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
    ) -> Assignment:
        existing = self.assignments.get(project_id)
        assignment = Assignment(
            id=existing.id if existing else _new_id(),
            project_id=project_id,
            project_name=project_name,
            mentor_id=mentor_id,
            mentor_name=mentor_name,
            mentor_email=mentor_email,
            created_by=created_by,
            status=status,
            duration=duration if duration is not None else (existing.duration if existing else None),
        )
        self.assignments[project_id] = assignment
        return assignment

    def find_assignment(self, project_id: str) -> Assignment | None:
        return self.assignments.get(project_id)

    def upsert_assignment_mentee(
        self,
        *,
        assignment_id: str,
        mentee_id: str | None,
        mentee_name: str,
        mentee_email: str,
    ) -> AssignmentMentee:
        key = (assignment_id, mentee_email.lower())
        existing = self.assignment_mentees.get(key)
        link = AssignmentMentee(
            id=existing.id if existing else _new_id(),
            assignment_id=assignment_id,
            mentee_id=mentee_id if mentee_id is not None else (existing.mentee_id if existing else None),
            mentee_name=mentee_name,
            mentee_email=mentee_email.lower(),
        )
        self.assignment_mentees[key] = link
        return link

    def list_assignment_mentees(self, assignment_id: str) -> list[AssignmentMentee]:
        return [m for (aid, _), m in self.assignment_mentees.items() if aid == assignment_id]
