from __future__ import annotations

from dataclasses import dataclass

"""Credential holder handed to the importer.

The importer never reaches for ambient auth state; whoever builds it passes an
AuthSession (the CLI builds one from the environment).
"""

__all__ = [
    "AuthSession",
]


@dataclass(frozen=True)
class AuthSession:
    """Bearer credential of the signed-in operator; None when not signed in."""
    access_token: str | None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)
