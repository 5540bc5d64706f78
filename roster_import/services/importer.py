from __future__ import annotations

import math
import time
from collections.abc import Callable
from pathlib import Path

from ..errors import RosterImportError
from ..excel.reader import read_roster
from ..logging.init import get_logger
from ..models.import_result import ImportResult, SkippedEntry
from ..models.row_record import RowRecord
from ..models.session import AuthSession
from .api_client import ImportClient
from .preview import PreviewState
from .validator import is_valid

"""Roster import workflow: load -> preview -> submit -> reconcile -> undo.

A RosterImporter owns the batch of one operator session. Loading a file
replaces the batch only when the file parses cleanly; a successful submit
clears it; a failed submit leaves it for a retry.
"""

__all__ = [
    "SessionExpiredError",
    "EmptyBatchError",
    "RosterImporter",
    "reconcile",
]


class SessionExpiredError(RosterImportError):
    def __init__(self) -> None:
        super().__init__("session expired or access token missing, please sign in again")


class EmptyBatchError(RosterImportError):
    def __init__(self) -> None:
        super().__init__("no roster loaded")


def reconcile(
    sent: list[RowRecord],
    skipped_raw: list[dict[str, str]],
) -> tuple[list[RowRecord], list[SkippedEntry]]:
    """Split the sent rows into (success, skipped) using the backend's skip list.

    Skip reports are matched on email against the sent rows only, so success
    and skipped always partition what was sent. A report for an email that was
    not sent is logged and dropped.
    """
    by_email = {r.email: r for r in sent if r.email}
    skipped: list[SkippedEntry] = []
    for s in skipped_raw:
        original = by_email.get(s["email"])
        if original is None:
            get_logger().warning(
                f"backend skipped an email that was not sent: {s['email']} ({s['reason']})"
            )
            continue
        if any(e.email == s["email"] for e in skipped):
            continue
        skipped.append(SkippedEntry.merge(original, s["reason"]))
    skipped_emails = {s.email for s in skipped}
    success = [r for r in sent if r.email not in skipped_emails]
    return success, skipped


class RosterImporter:
    def __init__(
        self,
        client: ImportClient,
        session: AuthSession,
        *,
        page_size: int = 10,
        undo_window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._session = session
        self._clock = clock
        self.undo_window_seconds = undo_window_seconds
        self.preview = PreviewState(page_size=page_size)
        self.file_name: str | None = None
        self.result: ImportResult | None = None

    @property
    def rows(self) -> list[RowRecord]:
        return self.preview.rows

    def load_file(self, path: Path) -> list[RowRecord]:
        """Parse a roster into the working batch.

        On DuplicateEmailError (or any read error) the current batch, file
        name and result stay as they were.
        """
        rows = read_roster(path)
        self.preview.rows = rows
        self.file_name = path.name
        self.result = None
        get_logger().info(f"loaded {len(rows)} rows from {path.name}")
        return rows

    def remove_file(self) -> None:
        self.preview.rows = []
        self.file_name = None
        self.result = None

    def _require_token(self) -> str:
        if not self._session.access_token:
            raise SessionExpiredError()
        return self._session.access_token

    def submit(self) -> ImportResult:
        """Send the valid rows and reconcile the backend's skip report."""
        token = self._require_token()
        batch = self.rows
        if not batch:
            raise EmptyBatchError()
        sent = [r for r in batch if is_valid(r)]

        logger = get_logger()
        logger.info(f"submitting {len(sent)}/{len(batch)} valid rows")
        # ImportRequestError propagates with the batch untouched
        skipped_raw = self._client.import_users(token, [r.to_payload() for r in sent])

        success, skipped = reconcile(sent, skipped_raw)
        self.result = ImportResult(
            success=success,
            skipped=skipped,
            imported_at=self._clock(),
            sent=len(sent),
        )
        self.preview.rows = []
        self.file_name = None
        logger.info(f"import finished: success {len(success)} / skipped {len(skipped)}")
        return self.result

    def undo_seconds_remaining(self) -> int:
        """Cosmetic countdown of the undo window; the backend decides eligibility."""
        if self.result is None:
            return 0
        elapsed = self._clock() - self.result.imported_at
        return max(0, math.ceil(self.undo_window_seconds - elapsed))

    def undo(self, confirm: Callable[[], bool]) -> bool:
        """Ask the backend to revert its last import.

        Returns False when the operator declines. The held result is cleared
        only after the backend accepted the request.
        """
        token = self._require_token()
        if not confirm():
            get_logger().info("undo cancelled")
            return False
        self._client.undo_last_import(token)
        self.result = None
        get_logger().info("last import undone")
        return True
