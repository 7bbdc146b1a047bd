"""
recordstore - a versioned-record data-access layer for PostgreSQL.

This package sits between a JSON HTTP surface and the relational store and
provides:

- Versioned record models (movies, users) with partial-update merging
- Parameterized, injection-safe statement rendering with allow-listed sorting
- Sync (psycopg pool) and async (asyncpg) repositories with per-call deadlines
- Optimistic concurrency on update via a version token
- A small error taxonomy: not found, edit conflict, duplicate value
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordstore.config import Settings, get_settings
from recordstore.database import Filters, Metadata, MovieFilter, UserFilter
from recordstore.domain import (
    DuplicateValue,
    EditConflict,
    ErrorKind,
    Movie,
    MovieUpdate,
    NewMovie,
    NewUser,
    RecordError,
    RecordNotFound,
    UnsafeSortError,
    User,
    UserUpdate,
    Validator,
)
from recordstore.repositories import (
    AsyncMovieRepository,
    AsyncRepositories,
    AsyncUserRepository,
    MovieRepository,
    Repositories,
    UserRepository,
)
from recordstore.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "Movie",
    "MovieUpdate",
    "NewMovie",
    "NewUser",
    "User",
    "UserUpdate",
    "Validator",
    # Filters
    "Filters",
    "Metadata",
    "MovieFilter",
    "UserFilter",
    # Errors
    "DuplicateValue",
    "EditConflict",
    "ErrorKind",
    "RecordError",
    "RecordNotFound",
    "UnsafeSortError",
    # Repositories
    "MovieRepository",
    "UserRepository",
    "AsyncMovieRepository",
    "AsyncUserRepository",
    "Repositories",
    "AsyncRepositories",
    # Logging
    "configure_logging",
    "get_logger",
]
