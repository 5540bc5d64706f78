from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the import error log.

One record per rejected row: rows the validator marked invalid, rows the
backend skipped, and emails that made the whole file conflict. row=-1 is used
when the source row is unknown (e.g. a skipped email the batch never held).
"""

__all__ = [
    "ErrorRecord",
    "INVALID_ROW",
    "SKIPPED_BY_SERVER",
    "DUPLICATE_EMAIL",
]

INVALID_ROW = "INVALID_ROW"
SKIPPED_BY_SERVER = "SKIPPED_BY_SERVER"
DUPLICATE_EMAIL = "DUPLICATE_EMAIL"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: roster filename being imported
        row: worksheet row number, -1 when unknown
        email: email of the affected row ("" when the row had none)
        error_type: UPPER_SNAKE_CASE classification
        message: validator violations or the backend's reason
    """
    timestamp: str
    file: str
    row: int
    email: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, email: str | None, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            email=email or "",
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # asdict keeps the key set fixed to the dataclass fields
        return json.dumps(asdict(self), ensure_ascii=False)
