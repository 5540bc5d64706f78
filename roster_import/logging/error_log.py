from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from roster_import.models.error_record import ErrorRecord

"""Error log buffering.

Rejected rows are collected in memory while an import runs and written out
as JSON Lines in one go. The file (`import-errors-YYYYMMDD-HHMMSS.log`, UTC)
is named on first access, so one run produces at most one file.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"import-errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: list[ErrorRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the file written, None if nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
