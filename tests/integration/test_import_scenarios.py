from __future__ import annotations

from pathlib import Path

import pytest

from assignment_importer.db.memory_store import InMemoryStore
from assignment_importer.logging.error_log import ErrorLogBuffer
from assignment_importer.models.config_models import ImportSettings, UnknownMenteePolicy
from assignment_importer.services.orchestrator import run_import
from assignment_importer.services.overview import coordinator_projects
from assignment_importer.tabular.headers import MissingColumnsError

"""End-to-end imports against the in-memory store.

Each test runs the whole pipeline (parse -> headers -> validate -> reconcile ->
aggregate) from raw upload bytes.
"""

COORD = "coord-1"


@pytest.fixture()
def error_log(tmp_path: Path) -> ErrorLogBuffer:
    return ErrorLogBuffer(logs_dir=tmp_path / "logs")


@pytest.fixture()
def campus() -> InMemoryStore:
    s = InMemoryStore()
    s.add_user("A", "a@x.edu", role="mentor", user_id="u-a")
    s.add_user("M1", "m1@x.edu", role="mentee", user_id="u-m1")
    s.add_user("M2", "m2@x.edu", role="mentee", user_id="u-m2")
    return s


def test_same_project_on_two_rows(campus: InMemoryStore, make_csv, error_log):
    content = make_csv([
        ["Alpha", "A", "a@x.edu", "M1", "m1@x.edu"],
        ["Alpha", "A", "a@x.edu", "M2", "m2@x.edu"],
    ])
    report = run_import(content, "alpha.csv", COORD, campus, error_log=error_log)

    assert report.success == 2
    assert report.failed == 0
    assert report.warnings == ["Row 2: Duplicate project name in CSV"]
    assert len(report.created_projects) == 1
    assert report.updated_projects == []

    project = report.created_projects[0]
    assert project.project_name == "Alpha"
    assert project.mentees == ("u-m1", "u-m2")
    assignment = campus.find_assignment(project.id)
    assert [m.mentee_email for m in campus.list_assignment_mentees(assignment.id)] == ["m1@x.edu", "m2@x.edu"]
    assert len(report.assigned_mentors) == 2
    assert len(report.assigned_mentees) == 2


def test_missing_mentee_email_column(campus: InMemoryStore, make_csv, error_log):
    content = make_csv(
        [["Alpha", "A", "a@x.edu", "M1"]],
        header=["Project Name", "Mentor Name", "Mentor Email", "Mentee Name"],
    )
    with pytest.raises(MissingColumnsError) as e:
        run_import(content, "alpha.csv", COORD, campus, error_log=error_log)
    assert e.value.missing == ["Mentee Email"]
    assert campus.projects == {}


def test_unknown_mentor_stored_by_email(campus: InMemoryStore, make_csv, error_log):
    content = make_csv([["Beta", "Dr. Nobody", "nobody@x.edu", "M1", "m1@x.edu"]])
    report = run_import(content, "beta.csv", COORD, campus, error_log=error_log)

    assert report.success == 1
    project = report.created_projects[0]
    assert project.mentor_id is None
    assert project.mentor_email == "nobody@x.edu"
    assert report.assigned_mentors == []
    assert campus.find_assignment(project.id).mentor_name == "Dr. Nobody"


def test_reimport_same_file_updates_instead_of_duplicating(campus: InMemoryStore, make_csv, error_log):
    content = make_csv([
        ["Alpha", "A", "a@x.edu", "M1", "m1@x.edu"],
        ["Gamma", "A", "a@x.edu", "M2", "m2@x.edu"],
    ])
    first = run_import(content, "a.csv", COORD, campus, error_log=error_log)
    second = run_import(content, "a.csv", COORD, campus, error_log=error_log)

    assert len(first.created_projects) == 2
    assert second.created_projects == []
    assert len(second.updated_projects) == 2
    assert len(campus.projects) == 2
    assert len(campus.assignments) == 2
    assert len(campus.assignment_mentees) == 2


def test_invalid_rows_skipped_valid_rows_imported(campus: InMemoryStore, make_csv, error_log):
    content = make_csv([
        ["Alpha", "A", "a@x.edu", "M1", "m1@x.edu"],
        ["Beta", "A", "a@x.edu", "M2", "bad-email"],
        ["", "A", "a@x.edu", "M2", "m2@x.edu"],
    ])
    report = run_import(content, "mixed.csv", COORD, campus, error_log=error_log)

    assert report.total_rows == 3
    assert report.success == 1
    assert report.skipped_rows == 2
    assert report.errors == ["Row 2: Invalid Mentee Email format", "Row 3: Project Name is required"]
    assert report.has_failures


def test_unknown_mentee_policies(campus: InMemoryStore, make_csv, error_log):
    content = make_csv([["Delta", "A", "a@x.edu", "New Student", "new@x.edu"]])

    strict = ImportSettings(unknown_mentee_policy=UnknownMenteePolicy.REJECT)
    rejected = run_import(content, "d.csv", COORD, campus, settings=strict, error_log=error_log)
    assert rejected.failed == 1
    assert rejected.errors == ["Row 1: Mentee not found - new@x.edu"]
    assert campus.projects == {}

    tolerated = run_import(content, "d.csv", COORD, campus, error_log=error_log)
    assert tolerated.success == 1
    assert tolerated.assigned_mentees[0]["mentee"] is None
    assert tolerated.created_projects[0].mentees == ()


def test_spreadsheet_upload_with_synonym_headers(campus: InMemoryStore, make_xlsx, error_log):
    content = make_xlsx([
        ["Title", "Mentor", "Mentor_Email", "Student Name", "Student Email", "Project Details"],
        ["Epsilon", "A", "A@X.EDU", "M1", "M1@x.edu", "Robotics"],
        [None, None, None, None, None, None],
        ["Zeta", "A", "a@x.edu", "M2", "m2@x.edu", None],
    ])
    report = run_import(content, "upload.xlsx", COORD, campus, error_log=error_log)

    assert report.success == 2
    by_name = {p.project_name: p for p in report.created_projects}
    assert by_name["Epsilon"].project_details == "Robotics"
    assert by_name["Epsilon"].mentor_id == "u-a"
    assert by_name["Zeta"].project_details == "Imported from CSV"


def test_imported_projects_show_in_overview(campus: InMemoryStore, make_csv, error_log):
    content = make_csv([["Alpha", "A", "a@x.edu", "M1", "m1@x.edu"]])
    run_import(content, "a.csv", COORD, campus, error_log=error_log)

    overview = coordinator_projects(campus, COORD)
    assert [o.project.project_name for o in overview] == ["Alpha"]
    assert overview[0].mentor_display_name == "A"
    assert [u.email for u in overview[0].mentee_profiles] == ["m1@x.edu"]
