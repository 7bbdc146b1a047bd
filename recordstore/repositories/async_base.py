"""
Asynchronous repository base on top of an asyncpg pool.

Mirrors ``recordstore.repositories.base.Repository`` for task-per-request
callers: the same statements (rendered with ``$n`` placeholders), the same
deadline semantics and the same error classification. Timeouts surface as
``asyncio.TimeoutError``; they are infrastructure errors, never
``RecordNotFound`` or ``EditConflict``.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, ClassVar, Generic, List, Optional, Sequence, Tuple, Type

import asyncpg

from recordstore.config import get_settings
from recordstore.database.filters import Filters, Metadata
from recordstore.database.query_builder import Predicate, QueryBuilder, Statement, TableSpec
from recordstore.domain.errors import DuplicateValue, EditConflict, RecordNotFound
from recordstore.domain.models import VersionedRecord
from recordstore.repositories.base import RecordT
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

# asyncpg rejects a zero timeout, so a spent deadline still gets a token budget.
_MIN_CALL_TIMEOUT = 0.001


def _affected_rows(status: str) -> int:
    """Parse the row count from a command tag such as ``DELETE 1``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class AsyncRepository(Generic[RecordT]):
    """Coroutine flavour of the CRUD and list operations for one table."""

    table: ClassVar[TableSpec]
    model: ClassVar[Type[VersionedRecord]]

    def __init__(self, pool: asyncpg.Pool, timeout: Optional[float] = None) -> None:
        self.pool = pool
        self.timeout = get_settings().db_query_timeout_seconds if timeout is None else timeout
        self.builder = QueryBuilder(self.table, paramstyle="numeric")

    @asynccontextmanager
    async def _connection(
        self, timeout: Optional[float] = None
    ) -> AsyncIterator[Tuple[asyncpg.Connection, Callable[[], float]]]:
        """
        Acquire a pooled connection under the call's deadline.

        Yields the connection and a callable returning the seconds left.
        """
        budget = self.timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + budget

        def remaining() -> float:
            return max(deadline - loop.time(), _MIN_CALL_TIMEOUT)

        async with self.pool.acquire(timeout=budget) as conn:
            yield conn, remaining

    @asynccontextmanager
    async def _unique_violations(self) -> AsyncIterator[None]:
        try:
            yield
        except asyncpg.exceptions.UniqueViolationError as exc:
            field = self.table.unique_constraints.get(getattr(exc, "constraint_name", None) or "")
            if field is None:
                raise
            log.info(
                "unique constraint violated",
                extra={"table": self.table.name, "field": field},
            )
            raise DuplicateValue(field) from exc

    async def _fetch_one(self, stmt: Statement, timeout: Optional[float]) -> Optional[Any]:
        async with self._connection(timeout) as (conn, remaining):
            return await conn.fetchrow(stmt.sql, *stmt.args, timeout=remaining())

    def _to_record(self, row: Any) -> RecordT:
        return self.model.model_validate(dict(row))  # type: ignore[return-value]

    async def create(self, record: RecordT, timeout: Optional[float] = None) -> RecordT:
        stmt = self.builder.insert(record.business_values())
        async with self._unique_violations():
            row = await self._fetch_one(stmt, timeout)
        if row is None:
            raise RuntimeError(f"{self.table.name}: INSERT returned no row")
        record.id = row["id"]
        record.created_at = row["created_at"]
        record.version = row["version"]
        log.debug("record created", extra={"table": self.table.name, "id": record.id})
        return record

    async def read(self, record_id: int, timeout: Optional[float] = None) -> RecordT:
        if record_id < 1:
            raise RecordNotFound()
        row = await self._fetch_one(self.builder.select_by_id(record_id), timeout)
        if row is None:
            raise RecordNotFound()
        return self._to_record(row)

    async def update(self, record: RecordT, timeout: Optional[float] = None) -> int:
        stmt = self.builder.update(record.business_values(), record.id, record.version)
        async with self._unique_violations():
            row = await self._fetch_one(stmt, timeout)
        if row is None:
            log.info(
                "edit conflict",
                extra={"table": self.table.name, "id": record.id, "version": record.version},
            )
            raise EditConflict()
        record.version = row["version"]
        log.debug(
            "record updated",
            extra={"table": self.table.name, "id": record.id, "version": record.version},
        )
        return record.version

    async def delete(self, record_id: int, timeout: Optional[float] = None) -> None:
        if record_id < 1:
            raise RecordNotFound()
        stmt = self.builder.delete(record_id)
        async with self._connection(timeout) as (conn, remaining):
            status = await conn.execute(stmt.sql, *stmt.args, timeout=remaining())
        if _affected_rows(status) == 0:
            raise RecordNotFound()
        log.debug("record deleted", extra={"table": self.table.name, "id": record_id})

    async def _list(
        self,
        predicates: Sequence[Predicate],
        filters: Filters,
        timeout: Optional[float] = None,
    ) -> Tuple[List[RecordT], Metadata]:
        stmt = self.builder.select_page(predicates, filters)
        async with self._connection(timeout) as (conn, remaining):
            rows = await conn.fetch(stmt.sql, *stmt.args, timeout=remaining())

        total_records = rows[0]["total_records"] if rows else 0
        records = [self._to_record(row) for row in rows]
        return records, Metadata.calculate(total_records, filters.page, filters.page_size)


__all__ = ["AsyncRepository"]
