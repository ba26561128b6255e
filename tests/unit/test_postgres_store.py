from __future__ import annotations

from unittest.mock import MagicMock

import psycopg2
import pytest

from assignment_importer.db.postgres_store import PostgresStore
from assignment_importer.db.store import StoreError

PROJECT_ROW = {
    "id": "p1",
    "project_name": "Alpha",
    "project_details": None,
    "mentor_id": None,
    "mentor_email": "m@x.io",
    "mentees": ["u1", "u2"],
    "assigned_by": "c1",
}


def _conn(fetchone=None, fetchall=None, execute_error=None):
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    cursor.fetchone.return_value = fetchone
    cursor.fetchall.return_value = fetchall or []
    if execute_error is not None:
        cursor.execute.side_effect = execute_error
    return conn, cursor


def test_find_user_by_email_maps_row_and_commits():
    conn, cursor = _conn(fetchone={"id": "u1", "name": "Dr. M", "email": "m@x.io", "role": "mentor"})
    user = PostgresStore(conn).find_user_by_email(" m@x.io ")

    assert user.id == "u1"
    assert user.role == "mentor"
    sql, params = cursor.execute.call_args[0]
    assert "lower(email) = lower(%s)" in sql
    assert params == ("m@x.io",)
    conn.commit.assert_called_once()


def test_find_user_by_email_none():
    conn, _ = _conn(fetchone=None)
    assert PostgresStore(conn).find_user_by_email("x@x.io") is None


def test_find_users_by_emails_skips_query_when_empty():
    conn, cursor = _conn()
    assert PostgresStore(conn).find_users_by_emails([]) == []
    cursor.execute.assert_not_called()


def test_find_project_maps_row():
    conn, cursor = _conn(fetchone=PROJECT_ROW)
    project = PostgresStore(conn).find_project("alpha", "c1")

    assert project.mentees == ("u1", "u2")
    assert project.project_details == ""
    assert "lower(btrim(project_name))" in cursor.execute.call_args[0][0]


def test_create_project_returns_inserted_row():
    conn, cursor = _conn(fetchone=PROJECT_ROW)
    project = PostgresStore(conn).create_project(
        project_name="Alpha",
        project_details="",
        mentor_id=None,
        mentor_email="m@x.io",
        mentees=("u1", "u2"),
        assigned_by="c1",
    )
    assert project.id == "p1"
    sql, params = cursor.execute.call_args[0]
    assert sql.startswith("INSERT INTO projects")
    assert params[4] == ["u1", "u2"]


def test_update_project_builds_set_clause():
    conn, cursor = _conn(fetchone=PROJECT_ROW)
    PostgresStore(conn).update_project("p1", mentees=("u1", "u2"), mentor_email="m@x.io")
    sql, params = cursor.execute.call_args[0]
    assert "mentees = %s::uuid[]" in sql
    assert "mentor_email = %s" in sql
    assert params == (["u1", "u2"], "m@x.io", "p1")


def test_update_project_rejects_unknown_field():
    conn, cursor = _conn()
    with pytest.raises(StoreError):
        PostgresStore(conn).update_project("p1", assigned_by="x")
    cursor.execute.assert_not_called()


def test_update_project_missing_row():
    conn, _ = _conn(fetchone=None)
    with pytest.raises(StoreError) as e:
        PostgresStore(conn).update_project("p404", project_details="x")
    assert "project not found" in str(e.value)


def test_upsert_assignment_uses_on_conflict():
    row = {
        "id": "a1",
        "project_id": "p1",
        "project_name": "Alpha",
        "mentor_id": None,
        "mentor_name": "Dr. M",
        "mentor_email": "m@x.io",
        "created_by": "c1",
        "status": "pending",
        "duration": None,
    }
    conn, cursor = _conn(fetchone=row)
    assignment = PostgresStore(conn).upsert_assignment(
        project_id="p1",
        project_name="Alpha",
        mentor_id=None,
        mentor_name="Dr. M",
        mentor_email="m@x.io",
        created_by="c1",
    )
    assert assignment.id == "a1"
    assert "ON CONFLICT (project_id)" in cursor.execute.call_args[0][0]


def test_upsert_assignment_mentee_lowercases_email():
    row = {"id": "l1", "assignment_id": "a1", "mentee_id": None, "mentee_name": "S", "mentee_email": "s@x.io"}
    conn, cursor = _conn(fetchone=row)
    link = PostgresStore(conn).upsert_assignment_mentee(
        assignment_id="a1", mentee_id=None, mentee_name="S", mentee_email="S@X.io"
    )
    assert link.mentee_id is None
    assert cursor.execute.call_args[0][1][3] == "s@x.io"


def test_driver_error_rolls_back_and_raises_store_error():
    conn, _ = _conn(execute_error=psycopg2.OperationalError("server closed the connection\n"))
    with pytest.raises(StoreError) as e:
        PostgresStore(conn).list_projects("c1")
    assert str(e.value) == "server closed the connection"
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
