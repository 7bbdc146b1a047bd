"""
Domain package for recordstore.

Exports the versioned record models, the validation helpers and the error
taxonomy. Keep this package free of I/O.
"""

from recordstore.domain.errors import (
    DuplicateValue,
    EditConflict,
    ErrorKind,
    RecordError,
    RecordNotFound,
    UnsafeSortError,
    is_infrastructure_error,
)
from recordstore.domain.models import (
    Movie,
    MovieUpdate,
    NewMovie,
    NewUser,
    Runtime,
    User,
    UserUpdate,
    VersionedRecord,
    validate_email,
    validate_password_plaintext,
)
from recordstore.domain.validator import Validator

__all__ = [
    # Models
    "Movie",
    "MovieUpdate",
    "NewMovie",
    "NewUser",
    "Runtime",
    "User",
    "UserUpdate",
    "VersionedRecord",
    # Validation
    "Validator",
    "validate_email",
    "validate_password_plaintext",
    # Errors
    "DuplicateValue",
    "EditConflict",
    "ErrorKind",
    "RecordError",
    "RecordNotFound",
    "UnsafeSortError",
    "is_infrastructure_error",
]
