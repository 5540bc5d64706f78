from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""RowRecord model for the roster importer.

A RowRecord is one user candidate extracted from an uploaded roster worksheet.
Fields stay as plain strings (role/provider upper-cased) so that unknown values
survive parsing and are rejected later by the validator instead of the reader.
"""

__all__ = [
    "Role",
    "Provider",
    "PersonName",
    "RowRecord",
]


class Role(str, Enum):
    """Roles that may be created through a roster import."""
    STUDENT = "STUDENT"
    APPROVER_IN = "APPROVER_IN"
    APPROVER_OUT = "APPROVER_OUT"
    EXPERIENCE_MANAGER = "EXPERIENCE_MANAGER"


class Provider(str, Enum):
    """Sign-in provider of the created account."""
    GOOGLE = "GOOGLE"
    LOCAL = "LOCAL"


@dataclass(frozen=True)
class PersonName:
    """Structured name assembled from the prefix/firstname/lastname columns."""
    prefix: str = ""
    first_name: str = ""
    last_name: str = ""

    def display(self) -> str:
        # "นาย" + "สมชาย" + " " + "ใจดี" -> "นายสมชาย ใจดี"
        return f"{self.prefix}{self.first_name} {self.last_name}".strip()

    def search_key(self) -> str:
        return f"{self.prefix}{self.first_name}{self.last_name}"

    def to_payload(self) -> dict[str, str]:
        return {
            "prefix": self.prefix,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }


@dataclass(frozen=True)
class RowRecord:
    """One roster row after header mapping.

    row_number is the worksheet row (header = row 1, first data row = row 2).
    extra holds unrecognised columns keyed by their lower-cased header.
    """
    name: str | PersonName | None
    email: str | None
    role: str | None
    provider: str | None
    student_id: str | None = None
    password: str | None = None
    row_number: int = -1
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        if isinstance(self.name, PersonName):
            return self.name.display()
        return self.name or ""

    @property
    def search_name(self) -> str:
        if isinstance(self.name, PersonName):
            return self.name.search_key()
        return self.name or ""

    def to_payload(self) -> dict[str, Any]:
        """Request body form of the row (unset fields are omitted)."""
        payload: dict[str, Any] = dict(self.extra)
        if isinstance(self.name, PersonName):
            payload["name"] = self.name.to_payload()
        elif self.name is not None:
            payload["name"] = self.name
        for key, value in (
            ("email", self.email),
            ("role", self.role),
            ("provider", self.provider),
            ("studentId", self.student_id),
            ("password", self.password),
        ):
            if value is not None:
                payload[key] = value
        return payload
