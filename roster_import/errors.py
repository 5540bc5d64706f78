from __future__ import annotations

"""Base exception shared by every failure the importer reports to the operator."""

__all__ = [
    "RosterImportError",
]


class RosterImportError(Exception):
    pass
