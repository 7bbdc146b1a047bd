"""
Synchronous repository base on top of the shared psycopg ``ConnectionPool``.

Every operation runs under a deadline (``timeout`` seconds, default from
``DB_QUERY_TIMEOUT_SECONDS``) that bounds both waiting for a pooled
connection and executing the statement. Store failures are classified here:

- no matching row             -> ``RecordNotFound``
- stale version on update     -> ``EditConflict``
- registered unique violation -> ``DuplicateValue``

Anything else (``PoolTimeout``, ``QueryCanceled`` from the statement timeout,
connection errors) propagates unchanged. Nothing is retried.
"""

from __future__ import annotations

import math
import time
from contextlib import contextmanager
from typing import Any, ClassVar, Dict, Generator, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from recordstore.config import get_settings
from recordstore.database.filters import Filters, Metadata
from recordstore.database.query_builder import Predicate, QueryBuilder, Statement, TableSpec
from recordstore.domain.errors import DuplicateValue, EditConflict, RecordNotFound
from recordstore.domain.models import VersionedRecord
from recordstore.infrastructure.db_factory import apply_statement_timeout
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=VersionedRecord)

# Smallest statement budget handed to the server once the deadline is nearly spent.
_MIN_STATEMENT_TIMEOUT_MS = 1


class Repository(Generic[RecordT]):
    """
    CRUD and list operations for one resource table.

    Subclasses set ``table`` and ``model``. Instances hold only the pool handle
    and the default timeout, so one instance can be shared across threads.
    """

    table: ClassVar[TableSpec]
    model: ClassVar[Type[VersionedRecord]]

    def __init__(self, pool: ConnectionPool, timeout: Optional[float] = None) -> None:
        self.pool = pool
        self.timeout = get_settings().db_query_timeout_seconds if timeout is None else timeout
        self.builder = QueryBuilder(self.table, paramstyle="format")

    # ------------------------------------------------------------------ plumbing

    @contextmanager
    def _cursor(self, timeout: Optional[float] = None) -> Generator[psycopg.Cursor, None, None]:
        """
        Borrow a connection and open a dict-row cursor inside one transaction.

        The transaction commits when the block exits cleanly and rolls back
        otherwise.
        """
        budget = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + budget
        with self.pool.connection(timeout=budget) as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                remaining_ms = math.ceil((deadline - time.monotonic()) * 1000)
                apply_statement_timeout(cur, max(remaining_ms, _MIN_STATEMENT_TIMEOUT_MS))
                yield cur

    @contextmanager
    def _unique_violations(self) -> Generator[None, None, None]:
        try:
            yield
        except psycopg.errors.UniqueViolation as exc:
            field = self.table.unique_constraints.get(exc.diag.constraint_name or "")
            if field is None:
                raise
            log.info(
                "unique constraint violated",
                extra={"table": self.table.name, "field": field},
            )
            raise DuplicateValue(field) from exc

    def _fetch_one(self, stmt: Statement, timeout: Optional[float]) -> Optional[Dict[str, Any]]:
        with self._cursor(timeout) as cur:
            cur.execute(stmt.sql, stmt.args)
            return cur.fetchone()

    def _to_record(self, row: Dict[str, Any]) -> RecordT:
        return self.model.model_validate(row)  # type: ignore[return-value]

    # ------------------------------------------------------------------ operations

    def create(self, record: RecordT, timeout: Optional[float] = None) -> RecordT:
        """
        Insert ``record`` and copy the store-assigned id, timestamp and version onto it.

        Raises
        ------
        DuplicateValue
            If a registered unique constraint is violated.
        """
        stmt = self.builder.insert(record.business_values())
        with self._unique_violations():
            row = self._fetch_one(stmt, timeout)
        if row is None:
            raise RuntimeError(f"{self.table.name}: INSERT returned no row")
        record.id = row["id"]
        record.created_at = row["created_at"]
        record.version = row["version"]
        log.debug("record created", extra={"table": self.table.name, "id": record.id})
        return record

    def read(self, record_id: int, timeout: Optional[float] = None) -> RecordT:
        """
        Fetch one record by id.

        Raises
        ------
        RecordNotFound
            If ``record_id`` is below 1 (no query is issued) or no row matches.
        """
        if record_id < 1:
            raise RecordNotFound()
        row = self._fetch_one(self.builder.select_by_id(record_id), timeout)
        if row is None:
            raise RecordNotFound()
        return self._to_record(row)

    def update(self, record: RecordT, timeout: Optional[float] = None) -> int:
        """
        Write ``record`` back if nobody else has changed it since it was read.

        The UPDATE matches on id and the version the caller read. On success
        the incremented version is stored on ``record`` and returned. No retry
        is attempted; re-reading and retrying is the caller's decision.

        Raises
        ------
        EditConflict
            If the stored version moved on or the record was deleted.
        DuplicateValue
            If a registered unique constraint is violated.
        """
        stmt = self.builder.update(record.business_values(), record.id, record.version)
        with self._unique_violations():
            row = self._fetch_one(stmt, timeout)
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

    def delete(self, record_id: int, timeout: Optional[float] = None) -> None:
        """
        Physically delete a record.

        Raises
        ------
        RecordNotFound
            If ``record_id`` is below 1 or no row was affected.
        """
        if record_id < 1:
            raise RecordNotFound()
        stmt = self.builder.delete(record_id)
        with self._cursor(timeout) as cur:
            cur.execute(stmt.sql, stmt.args)
            affected = cur.rowcount
        if affected == 0:
            raise RecordNotFound()
        log.debug("record deleted", extra={"table": self.table.name, "id": record_id})

    def _list(
        self,
        predicates: Sequence[Predicate],
        filters: Filters,
        timeout: Optional[float] = None,
    ) -> Tuple[List[RecordT], Metadata]:
        stmt = self.builder.select_page(predicates, filters)
        with self._cursor(timeout) as cur:
            cur.execute(stmt.sql, stmt.args)
            rows = cur.fetchall()

        total_records = rows[0]["total_records"] if rows else 0
        records = [self._to_record(row) for row in rows]
        metadata = Metadata.calculate(total_records, filters.page, filters.page_size)
        return records, metadata


__all__ = ["Repository", "RecordT"]
