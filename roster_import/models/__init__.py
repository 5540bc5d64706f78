"""Domain models for the roster importer."""

from .error_record import ErrorRecord
from .import_result import ImportResult, Page, ResultTab, SkippedEntry, paginate
from .row_record import PersonName, Provider, Role, RowRecord
from .session import AuthSession

__all__ = [
    # Roster rows
    "PersonName",
    "Provider",
    "Role",
    "RowRecord",
    # Import outcome
    "ImportResult",
    "Page",
    "ResultTab",
    "SkippedEntry",
    "paginate",
    # Session
    "AuthSession",
    # Error log
    "ErrorRecord",
]
