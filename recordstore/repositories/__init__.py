"""
Repositories package for recordstore.

``Repositories`` and ``AsyncRepositories`` bundle one repository per resource
around a single shared pool, so callers can hand one object to their request
handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import asyncpg
from psycopg_pool import ConnectionPool

from recordstore.repositories.async_base import AsyncRepository
from recordstore.repositories.base import Repository
from recordstore.repositories.movies import AsyncMovieRepository, MovieRepository
from recordstore.repositories.users import AsyncUserRepository, UserRepository


@dataclass(frozen=True)
class Repositories:
    """Sync repositories sharing one psycopg pool."""

    movies: MovieRepository
    users: UserRepository

    @classmethod
    def from_pool(cls, pool: ConnectionPool, timeout: Optional[float] = None) -> "Repositories":
        return cls(
            movies=MovieRepository(pool, timeout=timeout),
            users=UserRepository(pool, timeout=timeout),
        )


@dataclass(frozen=True)
class AsyncRepositories:
    """Async repositories sharing one asyncpg pool."""

    movies: AsyncMovieRepository
    users: AsyncUserRepository

    @classmethod
    def from_pool(cls, pool: asyncpg.Pool, timeout: Optional[float] = None) -> "AsyncRepositories":
        return cls(
            movies=AsyncMovieRepository(pool, timeout=timeout),
            users=AsyncUserRepository(pool, timeout=timeout),
        )


__all__ = [
    # Bases
    "Repository",
    "AsyncRepository",
    # Concrete
    "MovieRepository",
    "UserRepository",
    "AsyncMovieRepository",
    "AsyncUserRepository",
    # Containers
    "Repositories",
    "AsyncRepositories",
]
