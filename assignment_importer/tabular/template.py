from __future__ import annotations

from pathlib import Path

import pandas as pd

from .headers import OPTIONAL_COLUMNS, REQUIRED_COLUMNS

"""Downloadable CSV template for coordinators.

Headers are the logical column names verbatim so the template always
round-trips through resolve_columns().
"""

__all__ = [
    "TEMPLATE_HEADERS",
    "TEMPLATE_FILENAME",
    "export_template",
    "write_template",
]

TEMPLATE_HEADERS: tuple[str, ...] = REQUIRED_COLUMNS + OPTIONAL_COLUMNS
TEMPLATE_FILENAME = "project_import_template.csv"

_EXAMPLE_ROWS: list[dict[str, str]] = [
    {
        "Project Name": "Sample Project 1",
        "Mentor Name": "Dr. John Smith",
        "Mentor Email": "john.smith@git-india.edu.in",
        "Mentee Name": "Alice Johnson",
        "Mentee Email": "alice.johnson@git-india.edu.in",
        "Project Details": "A sample project description",
        "Project Status": "pending",
    },
    {
        "Project Name": "Sample Project 2",
        "Mentor Name": "Dr. Jane Doe",
        "Mentor Email": "jane.doe@git-india.edu.in",
        "Mentee Name": "Bob Wilson",
        "Mentee Email": "bob.wilson@git-india.edu.in",
        "Project Details": "Another sample project description",
        "Project Status": "active",
    },
]


def export_template() -> str:
    """Return the template CSV (header + two example rows) as text."""
    df = pd.DataFrame(_EXAMPLE_ROWS, columns=list(TEMPLATE_HEADERS))
    return df.to_csv(index=False, lineterminator="\n")


def write_template(path: Path) -> Path:
    """Write the template CSV to path (a directory gets the default file name)."""
    if path.is_dir():
        path = path / TEMPLATE_FILENAME
    path.write_text(export_template(), encoding="utf-8")
    return path
