from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..models.import_result import Page, paginate
from ..models.row_record import Role, RowRecord
from .validator import is_valid

"""Read-only preview of a loaded batch.

The view is a function of (batch, status filter, search text, page). Validity
is recomputed on every call rather than stored on the rows, and any change of
batch, filter or search sends the operator back to page 1.
"""

__all__ = [
    "StatusFilter",
    "BatchSummary",
    "PreviewState",
    "filter_rows",
    "summarize_batch",
    "user_type_label",
]

USER_TYPE_LABELS = {
    Role.STUDENT.value: "Student",
    Role.APPROVER_IN.value: "Internal approver",
    Role.APPROVER_OUT.value: "External approver",
    Role.EXPERIENCE_MANAGER.value: "Experience manager",
}


class StatusFilter(str, Enum):
    ALL = "all"
    VALID = "valid"
    INVALID = "invalid"


def _matches(row: RowRecord, term: str) -> bool:
    return (
        term in row.search_name.lower()
        or term in (row.email or "").lower()
        or term in (row.student_id or "").lower()
    )


def filter_rows(
    rows: list[RowRecord],
    status: StatusFilter | str = StatusFilter.ALL,
    search: str = "",
) -> list[RowRecord]:
    """Apply the validity filter, then a case-insensitive substring search."""
    status = StatusFilter(status)
    term = search.lower()
    result: list[RowRecord] = []
    for row in rows:
        valid = is_valid(row)
        if status is StatusFilter.VALID and not valid:
            continue
        if status is StatusFilter.INVALID and valid:
            continue
        if _matches(row, term):
            result.append(row)
    return result


def user_type_label(role: str | None) -> str:
    # unknown roles fall into the last bucket, as the upload page always did
    return USER_TYPE_LABELS.get(role or "", USER_TYPE_LABELS[Role.EXPERIENCE_MANAGER.value])


@dataclass(frozen=True)
class BatchSummary:
    total: int
    valid: int
    invalid: int
    user_type: str

    @property
    def all_valid(self) -> bool:
        return self.invalid == 0


def summarize_batch(rows: list[RowRecord]) -> BatchSummary:
    valid = sum(1 for r in rows if is_valid(r))
    return BatchSummary(
        total=len(rows),
        valid=valid,
        invalid=len(rows) - valid,
        user_type=user_type_label(rows[0].role) if rows else "",
    )


class PreviewState:
    """Filter/search/page cursor over one batch."""

    def __init__(self, rows: list[RowRecord] | None = None, *, page_size: int = 10) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive: {page_size}")
        self.page_size = page_size
        self._rows: list[RowRecord] = list(rows or [])
        self._status = StatusFilter.ALL
        self._search = ""
        self.page = 1

    @property
    def rows(self) -> list[RowRecord]:
        return self._rows

    @rows.setter
    def rows(self, rows: list[RowRecord]) -> None:
        self._rows = list(rows)
        self.page = 1

    @property
    def status(self) -> StatusFilter:
        return self._status

    @status.setter
    def status(self, status: StatusFilter | str) -> None:
        self._status = StatusFilter(status)
        self.page = 1

    @property
    def search(self) -> str:
        return self._search

    @search.setter
    def search(self, search: str) -> None:
        self._search = search
        self.page = 1

    def filtered(self) -> list[RowRecord]:
        return filter_rows(self._rows, self._status, self._search)

    def current_page(self) -> Page[RowRecord]:
        return paginate(self.filtered(), self.page, self.page_size)

    def summary(self) -> BatchSummary:
        return summarize_batch(self._rows)
