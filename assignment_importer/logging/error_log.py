from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Structured error log for one import.

Records are collected while the upload is processed and written once at the
end as JSON Lines to logs/errors-YYYYMMDD-HHMMSS.log (UTC). An import without
errors leaves no file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Pending error records of one import call (not thread safe)."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir or LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._target: Path | None = None

    @property
    def file_path(self) -> Path:
        """Log file of this buffer; the name is fixed on first access."""
        if self._target is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._target = self._logs_dir / f"errors-{stamp}.log"
        return self._target

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def record(self, file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create, buffer and return a record stamped now."""
        entry = ErrorRecord.create(file=file, row=row, error_type=error_type, message=message)
        self._pending.append(entry)
        return entry

    def counts(self) -> Counter[str]:
        """Pending records per error_type."""
        return Counter(r.error_type for r in self._pending)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the log file and clear the buffer.

        Returns the file written, or None when there was nothing to write.
        """
        if not self._pending:
            return None
        target = self.file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(r.to_json_line() + "\n" for r in self._pending)
        with target.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return target
