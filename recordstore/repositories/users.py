"""
User repositories (sync and async).

Email addresses are unique regardless of case (``users_email_key`` is a
unique index on ``lower(email)``); violating it on create or update raises
``DuplicateValue("email")``.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from recordstore.database.filters import Filters, Metadata, UserFilter
from recordstore.database.tables import USERS_TABLE, email_predicate, user_predicates
from recordstore.domain.errors import RecordNotFound
from recordstore.domain.models import User
from recordstore.repositories.async_base import AsyncRepository
from recordstore.repositories.base import Repository


class UserRepository(Repository[User]):
    """Data access for the ``users`` table."""

    table = USERS_TABLE
    model = User

    def read_by_email(self, email: str, timeout: Optional[float] = None) -> User:
        """
        Fetch the user registered under ``email``.

        Raises
        ------
        RecordNotFound
            If no user has that address.
        """
        row = self._fetch_one(self.builder.select_where([email_predicate(email)]), timeout)
        if row is None:
            raise RecordNotFound()
        return self._to_record(row)

    def list(
        self,
        user_filter: UserFilter,
        filters: Filters,
        timeout: Optional[float] = None,
    ) -> Tuple[List[User], Metadata]:
        return self._list(user_predicates(user_filter), filters, timeout)


class AsyncUserRepository(AsyncRepository[User]):
    """Async data access for the ``users`` table."""

    table = USERS_TABLE
    model = User

    async def read_by_email(self, email: str, timeout: Optional[float] = None) -> User:
        row = await self._fetch_one(self.builder.select_where([email_predicate(email)]), timeout)
        if row is None:
            raise RecordNotFound()
        return self._to_record(row)

    async def list(
        self,
        user_filter: UserFilter,
        filters: Filters,
        timeout: Optional[float] = None,
    ) -> Tuple[List[User], Metadata]:
        return await self._list(user_predicates(user_filter), filters, timeout)


__all__ = ["UserRepository", "AsyncUserRepository"]
