"""Test helpers shared by fixtures and test modules."""
from __future__ import annotations

import json
from pathlib import Path

import httpx
import pandas as pd

ROSTER_HEADER = ["prefix", "firstname", "lastname", "email", "role", "provider", "studentid"]


def make_excel(path: Path, rows: list[list[object]], sheet_name: str = "Sheet1") -> Path:
    """Write rows (first row = header) to a single-sheet workbook."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


class FakeBackend:
    """httpx.MockTransport handler recording requests to the import endpoints."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.skipped: list[dict[str, str]] = []
        self.import_status = 200
        self.undo_status = 200
        self.error_body: dict | None = None
        self.raise_transport_error = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_transport_error:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/users/import":
            if self.import_status >= 400:
                return httpx.Response(self.import_status, json=self.error_body or {})
            return httpx.Response(self.import_status, json={"skippedEmails": self.skipped})
        if request.url.path == "/users/import/undo":
            if self.undo_status >= 400:
                return httpx.Response(self.undo_status, json=self.error_body or {})
            return httpx.Response(self.undo_status, json={"deleted": 3})
        return httpx.Response(404, json={"message": "not found"})

    def bodies(self) -> list[dict]:
        return [json.loads(r.content or b"{}") for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
