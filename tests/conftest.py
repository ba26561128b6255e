# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from assignment_importer.db.memory_store import InMemoryStore
from assignment_importer.logging.init import reset_logging

COORDINATOR_ID = "c0000000-0000-0000-0000-000000000001"

HEADER = ["Project Name", "Mentor Name", "Mentor Email", "Mentee Name", "Mentee Email"]


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """import:
  unknown_mentee_policy: tolerate
  abort_on_row_errors: false
  default_project_details: Imported from CSV
  default_project_status: pending
report:
  max_errors: 5
  max_warnings: 3
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def coordinator_id() -> str:
    return COORDINATOR_ID


@pytest.fixture()
def store() -> InMemoryStore:
    """Store with one mentor (m@x.io) and one mentee (s@x.io)."""
    s = InMemoryStore()
    s.add_user("Dr. M", "m@x.io", role="mentor", user_id="u-mentor")
    s.add_user("Student S", "s@x.io", role="mentee", user_id="u-mentee")
    return s


def csv_bytes(rows: list[list[str]], header: list[str] | None = None) -> bytes:
    """Build CSV upload content; header defaults to the five required columns."""
    df = pd.DataFrame(rows, columns=header or HEADER)
    return df.to_csv(index=False, lineterminator="\n").encode("utf-8")


def xlsx_bytes(rows: list[list[object]]) -> bytes:
    """Build an .xlsx upload from a raw grid (first row is the header)."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return buf.getvalue()


@pytest.fixture()
def make_csv():
    return csv_bytes


@pytest.fixture()
def make_xlsx():
    return xlsx_bytes


@pytest.fixture()
def clean_env(monkeypatch):
    """Remove environment variables the CLI reads."""
    for name in (
        "DISABLE_DB_CONNECT", "IMPORT_COORDINATOR_ID", "DATABASE_URL", "PGDSN",
        "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE",
    ):
        monkeypatch.delenv(name, raising=False)
