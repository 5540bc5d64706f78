from __future__ import annotations

import re

from ..models.row_record import PersonName, Role, RowRecord

"""Role-specific admission rules for roster rows.

find_violations() lists every rule a row breaks; is_valid() is the boolean
view of it. Both are pure: the same row always yields the same answer.
"""

__all__ = [
    "UNIVERSITY_EMAIL_SUFFIX",
    "find_violations",
    "is_valid",
]

UNIVERSITY_EMAIL_SUFFIX = "@nu.ac.th"
# re.ASCII keeps \d from accepting Thai or other Unicode digits
STUDENT_ID_PATTERN = re.compile(r"\d{8}", re.ASCII)

PASSWORD_ROLES = {Role.APPROVER_OUT.value, Role.EXPERIENCE_MANAGER.value}
UNIVERSITY_ROLES = {Role.STUDENT.value, Role.APPROVER_IN.value}
_ROLE_VALUES = {r.value for r in Role}


def _has_name(row: RowRecord) -> bool:
    if isinstance(row.name, PersonName):
        return bool(row.name.first_name) and bool(row.name.last_name)
    return bool(row.name)


def find_violations(row: RowRecord) -> list[str]:
    """Return a human-readable message per failed rule, empty when the row is valid."""
    violations: list[str] = []
    if not _has_name(row):
        violations.append("name is missing (need name, or firstname and lastname)")
    if not row.email:
        violations.append("email is missing")
    if not row.role:
        violations.append("role is missing")
    elif row.role not in _ROLE_VALUES:
        violations.append(f"unknown role: {row.role}")
    if not row.provider:
        violations.append("provider is missing")

    if row.role in PASSWORD_ROLES and not row.password:
        violations.append(f"password is required for {row.role}")
    if row.role == Role.STUDENT.value and not STUDENT_ID_PATTERN.fullmatch(row.student_id or ""):
        violations.append("studentId must be exactly 8 digits")
    if row.role in UNIVERSITY_ROLES and not (row.email or "").endswith(UNIVERSITY_EMAIL_SUFFIX):
        violations.append(f"email must end with {UNIVERSITY_EMAIL_SUFFIX} for {row.role}")
    return violations


def is_valid(row: RowRecord) -> bool:
    return not find_violations(row)
