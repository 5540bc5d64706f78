from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from roster_import.errors import RosterImportError
from roster_import.models.row_record import PersonName, RowRecord

"""Roster worksheet reader.

Row 1 of the first worksheet is the header; every following non-blank row
becomes one RowRecord. Header cells are lower-cased and trimmed, and the
columns are mapped as follows:

- prefix / firstname / lastname -> structured name
- role / provider               -> upper-cased
- name / email / password / studentid -> trimmed string, unset when blank
- anything else                 -> RowRecord.extra, keyed by the header

Cells are read as raw objects with pandas' default NA strings disabled, so a
lastname of "NA" or "null" stays a string.
"""

__all__ = [
    "RosterReadError",
    "SheetHeaderError",
    "DuplicateEmailError",
    "read_first_sheet",
    "parse_rows",
    "find_duplicate_emails",
    "read_roster",
]

NAME_PART_KEYS = {"prefix": "prefix", "firstname": "first_name", "lastname": "last_name"}
UPPER_KEYS = {"role", "provider"}
FIELD_KEYS = {"name": "name", "email": "email", "password": "password", "studentid": "student_id"}


class RosterReadError(RosterImportError):
    """Raised when the roster file cannot be opened as a workbook."""


class SheetHeaderError(RosterReadError):
    """Raised when the first worksheet has no header row."""


class DuplicateEmailError(RosterImportError):
    """Raised when two rows of one file share an email; no row is accepted."""

    def __init__(self, emails: list[str]) -> None:
        self.emails = emails
        super().__init__(f"duplicate emails in file: {', '.join(emails)}")


def _is_blank(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, str):
        return val.strip() == ""
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def _cell_text(val: Any) -> str | None:
    """Trimmed text of a cell, None when blank."""
    if _is_blank(val):
        return None
    if isinstance(val, float) and val.is_integer():
        # 8 digit student ids typed as numbers come back as floats
        return str(int(val))
    if isinstance(val, pd.Timestamp):
        return val.isoformat()
    return str(val).strip()


def read_first_sheet(path: Path) -> pd.DataFrame:
    """Read the first worksheet without header inference."""
    try:
        xls = pd.ExcelFile(path, engine="openpyxl")
    except FileNotFoundError as e:
        raise RosterReadError(f"roster file not found: {path}") from e
    except (OSError, ValueError, zipfile.BadZipFile, InvalidFileException) as e:
        raise RosterReadError(f"cannot read roster file {path.name}: {e}") from e
    with xls:
        if not xls.sheet_names:
            raise SheetHeaderError(f"{path.name}: workbook has no worksheet")
        return xls.parse(xls.sheet_names[0], header=None, dtype=object, keep_default_na=False)


def _build_row(headers: list[str], values: list[Any], row_number: int) -> RowRecord:
    name: str | PersonName | None = None
    name_parts: dict[str, str] = {}
    fields: dict[str, str | None] = {}
    extra: dict[str, str] = {}

    for key, val in zip(headers, values, strict=False):
        if not key:
            continue
        text = _cell_text(val)
        if key in NAME_PART_KEYS:
            name_parts[NAME_PART_KEYS[key]] = text or ""
            name = PersonName(**name_parts)
        elif key in UPPER_KEYS:
            fields[key] = text.upper() if text else None
        elif key in FIELD_KEYS:
            if key == "name":
                name = text
                name_parts = {}
            else:
                fields[FIELD_KEYS[key]] = text
        elif text is not None:
            extra[key] = text

    return RowRecord(
        name=name,
        email=fields.get("email"),
        role=fields.get("role"),
        provider=fields.get("provider"),
        student_id=fields.get("student_id"),
        password=fields.get("password"),
        row_number=row_number,
        extra=extra,
    )


def parse_rows(df: pd.DataFrame, sheet_name: str = "") -> list[RowRecord]:
    """Turn a header-less worksheet frame into RowRecords (header = first row)."""
    if df.shape[0] < 1:
        raise SheetHeaderError(f"sheet '{sheet_name}' has no header row")
    headers = [(_cell_text(c) or "").lower() for c in df.iloc[0].tolist()]
    if not any(headers):
        raise SheetHeaderError(f"sheet '{sheet_name}' header row is empty")

    rows: list[RowRecord] = []
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None)):
        values = list(raw)
        if all(_is_blank(v) for v in values):
            continue
        # worksheet numbering: header is row 1
        rows.append(_build_row(headers, values, row_number=offset + 2))
    return rows


def find_duplicate_emails(rows: list[RowRecord]) -> list[str]:
    """Emails used by more than one row, each listed once in first-seen order.

    Rows without an email are left to the validator.
    """
    seen: set[str] = set()
    duplicates: list[str] = []
    for row in rows:
        if not row.email:
            continue
        if row.email in seen and row.email not in duplicates:
            duplicates.append(row.email)
        seen.add(row.email)
    return duplicates


def read_roster(path: Path) -> list[RowRecord]:
    """Parse a roster file into RowRecords.

    Raises:
        RosterReadError: the file is missing, not a workbook, or has no header.
        DuplicateEmailError: an email appears on more than one row.
    """
    df = read_first_sheet(path)
    rows = parse_rows(df, sheet_name=path.name)
    duplicates = find_duplicate_emails(rows)
    if duplicates:
        raise DuplicateEmailError(duplicates)
    return rows
