from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..db.store import AssignmentStore
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportSettings
from ..models.import_report import ImportReport
from ..tabular.headers import MissingColumnsError, resolve_columns
from ..tabular.reader import ParseError, detect_format, parse_table
from .aggregator import aggregate
from .progress import ProgressTracker
from .reconciler import EntityReconciler
from .validator import validate_rows

"""Service orchestration for one bulk assignment import.

parse -> resolve headers -> validate -> reconcile -> aggregate

The call is stateless: everything it needs (file bytes, coordinator id, store
client, settings) is passed in and an ImportReport comes back. Only the two
fatal pre-processing errors (ParseError, MissingColumnsError) and, in strict
mode, ValidationAbortedError escape as exceptions; all of them are raised
before the first write.
"""

__all__ = [
    "ProcessingError",
    "ValidationAbortedError",
    "run_import",
    "import_file",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Base exception for processing errors."""


class ValidationAbortedError(ProcessingError):
    """Strict mode: the file had invalid rows, nothing was written."""

    def __init__(self, errors: list[str], warnings: list[str]) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)
        super().__init__(f"{len(self.errors)} invalid row(s); import aborted before any write")


def _flush(error_log: ErrorLogBuffer) -> None:
    counts = error_log.counts()
    try:
        path = error_log.flush()
    except OSError as e:
        # エラーログ書き出し失敗でインポート結果は失わない
        logger.warning("failed to write error log: %s", e)
        return
    if path is not None:
        breakdown = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
        logger.info("error log written: %s (%s)", path, breakdown)


def run_import(
    content: bytes,
    filename: str,
    coordinator_id: str,
    store: AssignmentStore,
    *,
    content_type: str | None = None,
    settings: ImportSettings | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportReport:
    """Import one uploaded assignment file for a coordinator.

    Args:
        content: raw bytes of the upload
        filename: original file name (used for format detection and logging)
        coordinator_id: id of the importing coordinator (owner of created records)
        store: identity / row store client
        content_type: optional MIME type reported by the upload
        settings: import behaviour switches (defaults when None)
        error_log: buffer receiving structured error records (a fresh one when None)

    Returns:
        ImportReport aggregating every row outcome

    Raises:
        ParseError: unsupported type, empty or undecodable file
        MissingColumnsError: a required logical column cannot be resolved
        ValidationAbortedError: strict mode and at least one invalid row
    """
    start_time = datetime.now(UTC)
    settings = settings or ImportSettings()
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    try:
        file_format = detect_format(filename, content_type)
        raw_rows = parse_table(content, file_format)
        mapping = resolve_columns(raw_rows[0].keys())
    except (ParseError, MissingColumnsError) as e:
        error_type = "MISSING_COLUMNS" if isinstance(e, MissingColumnsError) else "PARSE_ERROR"
        logger.error("%s: %s", filename, e)
        error_log.record(filename, -1, error_type, str(e))
        _flush(error_log)
        raise

    logger.info("parsed %s format=%s rows=%d", filename, file_format, len(raw_rows))

    validation = validate_rows(raw_rows, mapping, default_status=settings.default_project_status)
    for row_number, message in zip(validation.invalid_rows, validation.errors, strict=True):
        error_log.record(filename, row_number, "ROW_VALIDATION_ERROR", message)
    for message in validation.warnings:
        logger.warning(message)

    if validation.errors and settings.abort_on_row_errors:
        logger.error("strict mode: %d invalid row(s), nothing imported", len(validation.errors))
        _flush(error_log)
        raise ValidationAbortedError(validation.errors, validation.warnings)

    reconciler = EntityReconciler(store, coordinator_id, settings)
    with ProgressTracker(len(validation.valid_rows)) as progress:
        outcomes = reconciler.reconcile(validation.valid_rows, progress=progress)

    for outcome in outcomes:
        if not outcome.succeeded:
            error_log.record(filename, outcome.row_number, "ROW_RECONCILIATION_ERROR", outcome.error or "")

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    report = aggregate(outcomes, validation, elapsed_seconds=elapsed)
    _flush(error_log)

    logger.info(
        "imported %s coordinator=%s success=%d failed=%d skipped=%d",
        filename,
        coordinator_id,
        report.success,
        report.failed,
        report.skipped_rows,
    )
    return report


def import_file(
    path: Path,
    coordinator_id: str,
    store: AssignmentStore,
    *,
    settings: ImportSettings | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportReport:
    """run_import() for a file on disk."""
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ParseError(f"cannot read {path}: {e}") from e
    return run_import(content, path.name, coordinator_id, store, settings=settings, error_log=error_log)
