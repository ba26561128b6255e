from __future__ import annotations

from ..models.config_models import ReportConfig
from ..models.import_report import ImportReport

"""Summary rendering for import reports.

render_summary_line: one machine-greppable SUMMARY line
render_report_lines: short human-readable report, truncating long
error / warning lists with a "+N more" line
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ImportReport) -> str:
    """Render the SUMMARY line of an import.

    Format:
    SUMMARY rows={total} valid={valid} success={success} failed={failed}
    skipped={skipped} created={created} updated={updated} warnings={warnings}
    elapsed_sec={elapsed}

    Examples:
        >>> report = ImportReport(
        ...     success=2, failed=0, errors=[], warnings=["Row 2: Duplicate project name in CSV"],
        ...     created_projects=[], updated_projects=[], assigned_mentors=[], assigned_mentees=[],
        ...     total_rows=2, skipped_rows=0, elapsed_seconds=0.5,
        ... )
        >>> render_summary_line(report)
        'SUMMARY rows=2 valid=2 success=2 failed=0 skipped=0 created=0 updated=0 warnings=1 elapsed_sec=0.5'
    """
    return (
        f"SUMMARY rows={report.total_rows} "
        f"valid={report.valid_rows} "
        f"success={report.success} "
        f"failed={report.failed} "
        f"skipped={report.skipped_rows} "
        f"created={len(report.created_projects)} "
        f"updated={len(report.updated_projects)} "
        f"warnings={len(report.warnings)} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)}"
    )


def _truncate(items: list[str], limit: int) -> list[str]:
    if limit < 0 or len(items) <= limit:
        return list(items)
    return items[:limit] + [f"+{len(items) - limit} more"]


def render_report_lines(report: ImportReport, config: ReportConfig | None = None) -> list[str]:
    """Human-readable report lines (what the coordinator sees after an upload)."""
    cfg = config or ReportConfig()
    lines = [f"Imported {report.success} row(s), {report.failed} failed"]
    if report.created_projects or report.updated_projects:
        lines.append(
            f"Projects: {len(report.created_projects)} created, {len(report.updated_projects)} updated"
        )
    pending = sorted({m["mentee_email"] for m in report.assigned_mentees if m.get("mentee") is None})
    if pending:
        lines.append(f"Pending mentee accounts: {', '.join(pending)}")
    if report.errors:
        lines.append(f"Errors ({len(report.errors)}):")
        lines.extend(f"  {e}" for e in _truncate(report.errors, cfg.max_errors))
    if report.warnings:
        lines.append(f"Warnings ({len(report.warnings)}):")
        lines.extend(f"  {w}" for w in _truncate(report.warnings, cfg.max_warnings))
    return lines
