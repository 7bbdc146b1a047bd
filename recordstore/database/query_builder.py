"""
Parameterized SQL statement builder.

The builder renders statements for one table at a time. Only identifiers that
come from the ``TableSpec`` (table and column names) or from validated
``Filters`` (sort column and direction) are interpolated into the SQL text;
every data value is passed as a bound parameter.

Two placeholder styles are supported so the same statements can be executed by
either driver:

- ``"format"``: ``%s`` placeholders (psycopg)
- ``"numeric"``: ``$1, $2, ...`` placeholders (asyncpg)

Usage:
    builder = QueryBuilder(MOVIES_TABLE)
    stmt = builder.select_by_id(42)
    cur.execute(stmt.sql, stmt.args)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple

from recordstore.database.filters import Filters
from recordstore.domain.errors import UnsafeSortError

PARAMSTYLES = ("format", "numeric")


@dataclass(frozen=True)
class TableSpec:
    """
    Static description of a resource table.

    Attributes
    ----------
    name : str
        Table name.
    columns : tuple[str, ...]
        Mutable business columns, in insert/update order.
    unique_constraints : Mapping[str, str]
        Unique constraint name -> record field it protects. Violations of
        these constraints are reported as ``DuplicateValue``.
    """

    name: str
    columns: Tuple[str, ...]
    unique_constraints: Mapping[str, str] = field(default_factory=dict)

    def select_columns(self) -> Tuple[str, ...]:
        return ("id", "created_at", *self.columns, "version")


@dataclass(frozen=True)
class Statement:
    """A SQL string and its ordered bound arguments."""

    sql: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Predicate:
    """
    A WHERE-clause fragment bound to a single value.

    ``template`` marks every place the value is used with ``{value}``. The
    fragment must be vacuously true for an empty input so that an unset
    filter matches every row.
    """

    template: str
    value: Any


class _Params:
    """Collects bound arguments and hands out placeholders."""

    def __init__(self, paramstyle: str) -> None:
        self.paramstyle = paramstyle
        self.args: List[Any] = []

    def bind(self, value: Any) -> str:
        self.args.append(value)
        if self.paramstyle == "numeric":
            return f"${len(self.args)}"
        return "%s"

    def render(self, predicate: Predicate) -> str:
        if self.paramstyle == "numeric":
            # One parameter, referenced as many times as the template needs it.
            return predicate.template.replace("{value}", self.bind(predicate.value))
        pieces = predicate.template.split("{value}")
        rendered = pieces[0]
        for piece in pieces[1:]:
            rendered += self.bind(predicate.value) + piece
        return rendered


class QueryBuilder:
    """Render CRUD and list statements for a single table."""

    def __init__(self, table: TableSpec, paramstyle: str = "format") -> None:
        if paramstyle not in PARAMSTYLES:
            raise ValueError(f"Unknown paramstyle '{paramstyle}'. Available: {', '.join(PARAMSTYLES)}")
        self.table = table
        self.paramstyle = paramstyle

    def _params(self) -> _Params:
        return _Params(self.paramstyle)

    def _select_list(self) -> str:
        return ", ".join(self.table.select_columns())

    def insert(self, values: Sequence[Any]) -> Statement:
        columns = self.table.columns
        if len(values) != len(columns):
            raise ValueError(f"{self.table.name}: expected {len(columns)} values, got {len(values)}")
        params = self._params()
        placeholders = ", ".join(params.bind(value) for value in values)
        sql = (
            f"INSERT INTO {self.table.name} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) "
            "RETURNING id, created_at, version"
        )
        return Statement(sql, tuple(params.args))

    def select_by_id(self, record_id: int) -> Statement:
        return self.select_by_field("id", record_id)

    def select_by_field(self, column: str, value: Any) -> Statement:
        if column not in self.table.select_columns():
            raise ValueError(f"{self.table.name}: unknown column '{column}'")
        params = self._params()
        sql = f"SELECT {self._select_list()} FROM {self.table.name} WHERE {column} = {params.bind(value)}"
        return Statement(sql, tuple(params.args))

    def select_where(self, predicates: Sequence[Predicate]) -> Statement:
        params = self._params()
        where = " AND ".join(params.render(predicate) for predicate in predicates) or "TRUE"
        sql = f"SELECT {self._select_list()} FROM {self.table.name} WHERE {where}"
        return Statement(sql, tuple(params.args))

    def update(self, values: Sequence[Any], record_id: int, version: int) -> Statement:
        """
        Render the optimistic update.

        The row only matches while its stored version still equals
        ``version``; the statement returns the incremented version.
        """
        columns = self.table.columns
        if len(values) != len(columns):
            raise ValueError(f"{self.table.name}: expected {len(columns)} values, got {len(values)}")
        params = self._params()
        assignments = ", ".join(f"{column} = {params.bind(value)}" for column, value in zip(columns, values))
        sql = (
            f"UPDATE {self.table.name} "
            f"SET {assignments}, version = version + 1 "
            f"WHERE id = {params.bind(record_id)} AND version = {params.bind(version)} "
            "RETURNING version"
        )
        return Statement(sql, tuple(params.args))

    def delete(self, record_id: int) -> Statement:
        params = self._params()
        sql = f"DELETE FROM {self.table.name} WHERE id = {params.bind(record_id)}"
        return Statement(sql, tuple(params.args))

    def select_page(self, predicates: Sequence[Predicate], filters: Filters) -> Statement:
        """
        Render a filtered, sorted, paginated select.

        Each row carries ``total_records``, the window count of all matching
        rows, so pagination metadata needs no second round-trip.
        """
        sort_column = filters.sort_column()
        if sort_column not in self.table.select_columns():
            raise UnsafeSortError(f"{self.table.name}: sort column '{sort_column}' is not a table column")
        direction = filters.sort_direction()

        params = self._params()
        where = " AND ".join(params.render(predicate) for predicate in predicates) or "TRUE"
        limit = params.bind(filters.limit())
        offset = params.bind(filters.offset())
        sql = (
            f"SELECT count(*) OVER() AS total_records, {self._select_list()} "
            f"FROM {self.table.name} "
            f"WHERE {where} "
            f"ORDER BY {sort_column} {direction}, id ASC "
            f"LIMIT {limit} OFFSET {offset}"
        )
        return Statement(sql, tuple(params.args))


__all__ = ["PARAMSTYLES", "TableSpec", "Statement", "Predicate", "QueryBuilder"]
