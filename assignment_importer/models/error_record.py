from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One line of the JSON Lines error log.

Keys are fixed: timestamp, file, row, error_type, message. row is the 1-based
data row the message refers to, or -1 when the whole upload was rejected
(unreadable file, missing columns).
"""

__all__ = [
    "ErrorRecord",
]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601, "Z" suffix
    file: str  # upload name as given by the caller
    row: int  # -1: ファイル単位のエラー
    error_type: str  # PARSE_ERROR / MISSING_COLUMNS / ROW_VALIDATION_ERROR / ROW_RECONCILIATION_ERROR
    message: str  # same text the report shows

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        return ErrorRecord(timestamp=_utc_now(), file=file, row=row, error_type=error_type, message=message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
