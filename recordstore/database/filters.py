"""
Pagination, sorting and predicate filters for list queries.

``Filters`` carries the generic page/size/sort bundle, ``MovieFilter`` and
``UserFilter`` carry the resource-specific predicates, and ``Metadata``
describes the page that was returned.
"""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from recordstore.domain.errors import UnsafeSortError
from recordstore.domain.validator import Validator, permitted_value

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100

MOVIE_SORT_SAFELIST: Tuple[str, ...] = (
    "id",
    "title",
    "year",
    "runtime",
    "-id",
    "-title",
    "-year",
    "-runtime",
)

USER_SORT_SAFELIST: Tuple[str, ...] = (
    "id",
    "name",
    "email",
    "created_at",
    "-id",
    "-name",
    "-email",
    "-created_at",
)


class Filters(BaseModel):
    """
    Page, page size and sort key for a list query.

    ``sort`` must be one of ``sort_safelist``; a leading ``-`` means
    descending order.
    """

    page: int = 1
    page_size: int = 20
    sort: str = "id"
    sort_safelist: Tuple[str, ...] = ()

    model_config = {"frozen": True}

    def validate_filters(self, v: Validator) -> None:
        v.check(self.page > 0, "page", "must be greater than zero")
        v.check(self.page <= MAX_PAGE, "page", "must be a maximum of 10 million")
        v.check(self.page_size > 0, "page_size", "must be greater than zero")
        v.check(self.page_size <= MAX_PAGE_SIZE, "page_size", "must be a maximum of 100")
        v.check(permitted_value(self.sort, *self.sort_safelist), "sort", "invalid sort value")

    def sort_column(self) -> str:
        """
        Return the column to order by.

        Raises
        ------
        UnsafeSortError
            If ``sort`` is not in the allow-list. Filters are expected to have
            been validated before they reach the query layer.
        """
        if self.sort not in self.sort_safelist:
            raise UnsafeSortError(f"unsafe sort parameter: {self.sort!r}")
        return self.sort.removeprefix("-")

    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    """Pagination metadata for a list result. All zero when nothing matched."""

    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    model_config = {"frozen": True}

    @classmethod
    def calculate(cls, total_records: int, page: int, page_size: int) -> "Metadata":
        # ceil(0 / n) would claim a last page of 0; no rows means no bounds at all.
        if total_records == 0:
            return cls()
        return cls(
            current_page=page,
            page_size=page_size,
            first_page=1,
            last_page=math.ceil(total_records / page_size),
            total_records=total_records,
        )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_defaults=True)


class MovieFilter(BaseModel):
    """Movie predicates: full-text title query and required genres."""

    title: str = ""
    genres: List[str] = Field(default_factory=list)


class UserFilter(BaseModel):
    """User predicates: optional exact matches."""

    email: Optional[str] = None
    activated: Optional[bool] = None


__all__ = [
    "MAX_PAGE",
    "MAX_PAGE_SIZE",
    "MOVIE_SORT_SAFELIST",
    "USER_SORT_SAFELIST",
    "Filters",
    "Metadata",
    "MovieFilter",
    "UserFilter",
]
