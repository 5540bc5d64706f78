from __future__ import annotations

from dataclasses import dataclass

from ..models.import_result import ImportResult
from .preview import BatchSummary

"""SUMMARY line rendering for an import run.

Format:
SUMMARY file={name} rows={total} valid={valid} invalid={invalid} sent={sent} success={success} skipped={skipped}
"""

__all__ = [
    "ImportSummary",
    "build_summary",
    "render_summary_line",
]


@dataclass(frozen=True)
class ImportSummary:
    file_name: str
    total_rows: int
    valid_rows: int
    invalid_rows: int
    sent_rows: int
    success_rows: int
    skipped_rows: int


def build_summary(file_name: str, batch: BatchSummary, result: ImportResult | None) -> ImportSummary:
    """Combine the pre-submit batch counts with the reconciled result.

    result is None when nothing was submitted (e.g. the import was refused).
    """
    return ImportSummary(
        file_name=file_name,
        total_rows=batch.total,
        valid_rows=batch.valid,
        invalid_rows=batch.invalid,
        sent_rows=result.sent if result else 0,
        success_rows=len(result.success) if result else 0,
        skipped_rows=len(result.skipped) if result else 0,
    )


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line.

    File names with spaces are kept as-is; consumers split on ` key=`.

    Examples:
        >>> s = ImportSummary("roster.xlsx", 3, 3, 0, 3, 2, 1)
        >>> render_summary_line(s)
        'SUMMARY file=roster.xlsx rows=3 valid=3 invalid=0 sent=3 success=2 skipped=1'
    """
    return (
        f"SUMMARY file={summary.file_name} "
        f"rows={summary.total_rows} "
        f"valid={summary.valid_rows} "
        f"invalid={summary.invalid_rows} "
        f"sent={summary.sent_rows} "
        f"success={summary.success_rows} "
        f"skipped={summary.skipped_rows}"
    )
