"""
Error taxonomy for the data-access layer.

Repositories classify exactly three store-level outcomes into domain errors:

- ``RecordNotFound``: the requested id is absent or was already deleted.
- ``EditConflict``: an optimistic update presented a stale version.
- ``DuplicateValue``: a unique constraint on a designated column was violated.

Everything else (connectivity problems, statement timeouts, pool exhaustion,
bad configuration) propagates unmodified as raised by psycopg, psycopg_pool or
asyncpg. Callers decide whether those are retryable.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Closed set of classified error kinds."""

    NOT_FOUND = "not_found"
    EDIT_CONFLICT = "edit_conflict"
    DUPLICATE_VALUE = "duplicate_value"


class RecordError(Exception):
    """Base class for classified data-access errors."""

    kind: ErrorKind
    default_message: str = "record error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class RecordNotFound(RecordError):
    """Raised when a record id does not match any row."""

    kind = ErrorKind.NOT_FOUND
    default_message = "record not found"


class EditConflict(RecordError):
    """Raised when an update's expected version no longer matches the stored one."""

    kind = ErrorKind.EDIT_CONFLICT
    default_message = "edit conflict"


class DuplicateValue(RecordError):
    """
    Raised when a write violates a unique constraint on a designated column.

    Attributes
    ----------
    field : str
        Name of the record field holding the duplicated value (e.g. ``email``).
    """

    kind = ErrorKind.DUPLICATE_VALUE

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"duplicate {field}")


class UnsafeSortError(ValueError):
    """
    Raised when a sort key outside the allow-list reaches the query layer.

    This is a caller contract violation: filters must be validated before
    they are handed to a repository.
    """


def is_infrastructure_error(exc: BaseException) -> bool:
    """
    Return True for anything the repositories did not classify.

    ``UnsafeSortError`` is a caller bug, not an infrastructure failure.
    """
    return not isinstance(exc, (RecordError, UnsafeSortError))


__all__ = [
    "ErrorKind",
    "RecordError",
    "RecordNotFound",
    "EditConflict",
    "DuplicateValue",
    "UnsafeSortError",
    "is_infrastructure_error",
]
