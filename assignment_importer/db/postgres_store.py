from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import psycopg2
import psycopg2.extras

from ..models.entities import Assignment, AssignmentMentee, Project, User
from .store import PROJECT_UPDATABLE_FIELDS, StoreError

"""PostgreSQL AssignmentStore backed by psycopg2.

Every public method is one short transaction: execute -> COMMIT, or ROLLBACK
and StoreError on any driver error. Nothing here spans more than one call, so
a failing import row never rolls back rows processed before it.

Tables (see schema.sql): users, projects, project_assignments,
project_assignment_mentees.
"""

__all__ = [
    "PostgresStore",
]

_USER_COLS = "id, name, email, role"
_PROJECT_COLS = "id, project_name, project_details, mentor_id, mentor_email, mentees, assigned_by"
_ASSIGNMENT_COLS = (
    "id, project_id, project_name, mentor_id, mentor_name, mentor_email, created_by, status, duration"
)
_MENTEE_COLS = "id, assignment_id, mentee_id, mentee_name, mentee_email"


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _user(row: dict[str, Any]) -> User:
    return User(id=str(row["id"]), name=row["name"] or "", email=row["email"], role=row.get("role"))


def _project(row: dict[str, Any]) -> Project:
    return Project(
        id=str(row["id"]),
        project_name=row["project_name"],
        project_details=row["project_details"] or "",
        mentor_id=_opt_str(row["mentor_id"]),
        mentor_email=row["mentor_email"],
        mentees=tuple(str(m) for m in (row["mentees"] or [])),
        assigned_by=str(row["assigned_by"]),
    )


def _assignment(row: dict[str, Any]) -> Assignment:
    return Assignment(
        id=str(row["id"]),
        project_id=str(row["project_id"]),
        project_name=row["project_name"],
        mentor_id=_opt_str(row["mentor_id"]),
        mentor_name=row["mentor_name"] or "",
        mentor_email=row["mentor_email"],
        created_by=str(row["created_by"]),
        status=row["status"],
        duration=row.get("duration"),
    )


def _mentee(row: dict[str, Any]) -> AssignmentMentee:
    return AssignmentMentee(
        id=str(row["id"]),
        assignment_id=str(row["assignment_id"]),
        mentee_id=_opt_str(row["mentee_id"]),
        mentee_name=row["mentee_name"] or "",
        mentee_email=row["mentee_email"],
    )


class PostgresStore:
    def __init__(self, conn: Any) -> None:
        self.conn = conn

    def _run(self, sql: str, params: Sequence[Any] = (), *, fetch: str = "one") -> Any:
        """Execute one statement in its own transaction.

        fetch: "one" -> dict | None, "all" -> list[dict]
        """
        try:
            with self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(sql, tuple(params))
                result = cur.fetchone() if fetch == "one" else cur.fetchall()
            self.conn.commit()
        except psycopg2.Error as e:
            try:
                self.conn.rollback()
            except psycopg2.Error:  # pragma: no cover - connection already gone
                pass
            raise StoreError(str(e).strip()) from e
        return result

    # --- users ---
    def find_user_by_email(self, email: str) -> User | None:
        row = self._run(
            f"SELECT {_USER_COLS} FROM users WHERE lower(email) = lower(%s) LIMIT 1",
            (email.strip(),),
        )
        return _user(row) if row else None

    def find_users_by_emails(self, emails: Sequence[str]) -> list[User]:
        if not emails:
            return []
        keys = sorted({e.strip().lower() for e in emails})
        rows = self._run(
            f"SELECT {_USER_COLS} FROM users WHERE lower(email) = ANY(%s)", (keys,), fetch="all"
        )
        return [_user(r) for r in rows]

    def find_users_by_ids(self, ids: Sequence[str]) -> list[User]:
        if not ids:
            return []
        rows = self._run(
            f"SELECT {_USER_COLS} FROM users WHERE id = ANY(%s::uuid[])", (list(dict.fromkeys(ids)),), fetch="all"
        )
        return [_user(r) for r in rows]

    # --- projects ---
    def find_project(self, project_name: str, assigned_by: str) -> Project | None:
        row = self._run(
            f"SELECT {_PROJECT_COLS} FROM projects "
            "WHERE lower(btrim(project_name)) = lower(btrim(%s)) AND assigned_by = %s "
            "ORDER BY created_at LIMIT 1",
            (project_name, assigned_by),
        )
        return _project(row) if row else None

    def list_projects(self, assigned_by: str) -> list[Project]:
        rows = self._run(
            f"SELECT {_PROJECT_COLS} FROM projects WHERE assigned_by = %s ORDER BY created_at DESC",
            (assigned_by,),
            fetch="all",
        )
        return [_project(r) for r in rows]

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
        row = self._run(
            "INSERT INTO projects (project_name, project_details, mentor_id, mentor_email, mentees, assigned_by) "
            f"VALUES (%s, %s, %s, %s, %s::uuid[], %s) RETURNING {_PROJECT_COLS}",
            (project_name, project_details, mentor_id, mentor_email, list(mentees), assigned_by),
        )
        return _project(row)

    def update_project(self, project_id: str, **changes: object) -> Project:
        unknown = set(changes) - PROJECT_UPDATABLE_FIELDS
        if unknown:
            raise StoreError(f"cannot update project fields: {sorted(unknown)}")
        if not changes:
            raise StoreError("update_project called without changes")
        assignments = []
        params: list[Any] = []
        for col, value in changes.items():
            if col == "mentees":
                assignments.append(f"{col} = %s::uuid[]")
                params.append(list(value))  # type: ignore[call-overload]
            else:
                assignments.append(f"{col} = %s")
                params.append(value)
        params.append(project_id)
        row = self._run(
            f"UPDATE projects SET {', '.join(assignments)} WHERE id = %s RETURNING {_PROJECT_COLS}",
            params,
        )
        if row is None:
            raise StoreError(f"project not found: {project_id}")
        return _project(row)

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
        row = self._run(
            "INSERT INTO project_assignments "
            "(project_id, project_name, mentor_id, mentor_name, mentor_email, created_by, status, duration) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (project_id) DO UPDATE SET "
            "project_name = EXCLUDED.project_name, mentor_id = EXCLUDED.mentor_id, "
            "mentor_name = EXCLUDED.mentor_name, mentor_email = EXCLUDED.mentor_email, "
            "status = EXCLUDED.status, "
            "duration = COALESCE(EXCLUDED.duration, project_assignments.duration) "
            f"RETURNING {_ASSIGNMENT_COLS}",
            (project_id, project_name, mentor_id, mentor_name, mentor_email, created_by, status, duration),
        )
        return _assignment(row)

    def find_assignment(self, project_id: str) -> Assignment | None:
        row = self._run(
            f"SELECT {_ASSIGNMENT_COLS} FROM project_assignments WHERE project_id = %s",
            (project_id,),
        )
        return _assignment(row) if row else None

    def upsert_assignment_mentee(
        self,
        *,
        assignment_id: str,
        mentee_id: str | None,
        mentee_name: str,
        mentee_email: str,
    ) -> AssignmentMentee:
        row = self._run(
            "INSERT INTO project_assignment_mentees (assignment_id, mentee_id, mentee_name, mentee_email) "
            "VALUES (%s, %s, %s, %s) "
            "ON CONFLICT (assignment_id, mentee_email) DO UPDATE SET "
            "mentee_id = COALESCE(EXCLUDED.mentee_id, project_assignment_mentees.mentee_id), "
            "mentee_name = EXCLUDED.mentee_name "
            f"RETURNING {_MENTEE_COLS}",
            (assignment_id, mentee_id, mentee_name, mentee_email.lower()),
        )
        return _mentee(row)

    def list_assignment_mentees(self, assignment_id: str) -> list[AssignmentMentee]:
        rows = self._run(
            f"SELECT {_MENTEE_COLS} FROM project_assignment_mentees WHERE assignment_id = %s ORDER BY created_at",
            (assignment_id,),
            fetch="all",
        )
        return [_mentee(r) for r in rows]
