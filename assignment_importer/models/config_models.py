from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Config dataclasses for the bulk project-assignment importer.

These are the typed settings handed to the services layer. Parsing and
validation of the YAML file lives in assignment_importer/config/loader.py.
"""


class UnknownMenteePolicy(Enum):
    """What the reconciler does when a mentee email has no user account.

    - TOLERATE: record the mentee by name/email with a null id (self-registration later)
    - REJECT: fail the row with "Mentee not found"
    """
    TOLERATE = "tolerate"
    REJECT = "reject"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportSettings:
    """Behaviour switches for one import run."""
    unknown_mentee_policy: UnknownMenteePolicy = UnknownMenteePolicy.TOLERATE
    abort_on_row_errors: bool = False  # strict mode: any invalid row aborts before writes
    default_project_details: str = "Imported from CSV"  # used only when creating a project
    default_project_status: str = "pending"


@dataclass(frozen=True)
class ReportConfig:
    """Truncation limits for the human-readable report."""
    max_errors: int = 5
    max_warnings: int = 3


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object loaded from config/import.yml."""
    settings: ImportSettings = field(default_factory=ImportSettings)
    report: ReportConfig = field(default_factory=ReportConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
