from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from .row_record import RowRecord

"""Import outcome models: skipped entries, the reconciled result and paging.

SkippedEntry is the display-ready merge of a backend skip report
({email, reason}) with the original row's name, student id, provider and role.
"""

__all__ = [
    "SkippedEntry",
    "ImportResult",
    "ResultTab",
    "Page",
    "paginate",
]

T = TypeVar("T")


@dataclass(frozen=True)
class SkippedEntry:
    """A row the backend declined to import, plus the backend's reason."""
    email: str
    reason: str
    name: str | None = None
    student_id: str | None = None
    provider: str | None = None
    role: str | None = None
    row_number: int = -1

    @classmethod
    def merge(cls, original: RowRecord, reason: str) -> SkippedEntry:
        return cls(
            email=original.email or "",
            reason=reason,
            name=original.display_name,
            student_id=original.student_id,
            provider=original.provider,
            role=original.role,
            row_number=original.row_number,
        )


class ResultTab(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    total_pages: int
    total_items: int


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice one 1-based page out of items.

    total_pages is ceil(len / page_size), so an empty sequence has 0 pages;
    a page past the end yields an empty item list.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive: {page_size}")
    page = max(page, 1)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        total_pages=math.ceil(len(items) / page_size),
        total_items=len(items),
    )


@dataclass(frozen=True)
class ImportResult:
    """Reconciled outcome of one submission.

    success and the skipped emails partition the rows that were sent.
    imported_at is a monotonic clock reading used for the undo countdown.
    """
    success: list[RowRecord]
    skipped: list[SkippedEntry]
    imported_at: float = 0.0
    sent: int = 0

    def page(self, tab: ResultTab | str, page: int, page_size: int) -> Page:
        tab = ResultTab(tab)
        items: Sequence = self.success if tab is ResultTab.SUCCESS else self.skipped
        return paginate(items, page, page_size)
