"""Domain models for the bulk project-assignment importer.

This package contains the domain model classes used throughout the
application: configuration, row-level pipeline models, store entities and
the aggregated import report.
"""

from .config_models import DatabaseConfig, ImportConfig, ImportSettings, ReportConfig, UnknownMenteePolicy
from .entities import Assignment, AssignmentMentee, Project, User
from .import_report import ImportReport, RowOutcome, RowState
from .row_data import ColumnMapping, NormalizedRow, RawRow

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ImportSettings",
    "ReportConfig",
    "UnknownMenteePolicy",
    # Store entities
    "Assignment",
    "AssignmentMentee",
    "Project",
    "User",
    # Processing models
    "ColumnMapping",
    "NormalizedRow",
    "RawRow",
    "ImportReport",
    "RowOutcome",
    "RowState",
]
