from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from roster_import.errors import RosterImportError
from roster_import.logging.init import get_logger

"""HTTP client for the backend's import endpoints.

Calls are made once: no retry or backoff, and no timeout unless configured.
Any transport failure or non-2xx answer becomes an ImportRequestError whose
message is the backend's own `message` field when it sent one.
"""

__all__ = [
    "ImportRequestError",
    "ImportClient",
    "IMPORT_PATH",
    "UNDO_PATH",
]

IMPORT_PATH = "/users/import"
UNDO_PATH = "/users/import/undo"

IMPORT_FALLBACK_MESSAGE = "Unable to import users, please try again."
UNDO_FALLBACK_MESSAGE = "Unable to undo the last import."


class ImportRequestError(RosterImportError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    # validation pipes answer with a list of messages
    if isinstance(message, list):
        message = ", ".join(str(m) for m in message if m)
    return str(message) if message else None


class ImportClient:
    """Thin wrapper over an httpx.Client bound to the backend base URL."""

    def __init__(
        self,
        backend_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=backend_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ImportClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _post(self, path: str, token: str, body: dict[str, Any], fallback: str) -> httpx.Response:
        logger = get_logger()
        try:
            response = self._client.post(
                path,
                json=body,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as e:
            logger.debug(f"POST {path} transport error: {e!r}")
            raise ImportRequestError(fallback) from e
        if response.is_error:
            logger.debug(f"POST {path} -> {response.status_code}")
            raise ImportRequestError(
                _server_message(response) or fallback,
                status_code=response.status_code,
            )
        return response

    def import_users(self, token: str, users: Sequence[dict[str, Any]]) -> list[dict[str, str]]:
        """POST the users; returns the backend's skip list ([{email, reason}])."""
        response = self._post(IMPORT_PATH, token, {"users": list(users)}, IMPORT_FALLBACK_MESSAGE)
        try:
            body = response.json()
        except ValueError:
            body = {}
        skipped = body.get("skippedEmails") if isinstance(body, dict) else None
        return [
            {"email": str(s.get("email", "")), "reason": str(s.get("reason", ""))}
            for s in (skipped or [])
            if isinstance(s, dict)
        ]

    def undo_last_import(self, token: str) -> None:
        self._post(UNDO_PATH, token, {}, UNDO_FALLBACK_MESSAGE)
