"""Movie repositories (sync and async)."""

from __future__ import annotations

from typing import List, Optional, Tuple

from recordstore.database.filters import Filters, Metadata, MovieFilter
from recordstore.database.tables import MOVIES_TABLE, movie_predicates
from recordstore.domain.models import Movie
from recordstore.repositories.async_base import AsyncRepository
from recordstore.repositories.base import Repository


class MovieRepository(Repository[Movie]):
    """Data access for the ``movies`` table."""

    table = MOVIES_TABLE
    model = Movie

    def list(
        self,
        movie_filter: MovieFilter,
        filters: Filters,
        timeout: Optional[float] = None,
    ) -> Tuple[List[Movie], Metadata]:
        """
        List movies whose title matches ``movie_filter.title`` (full-text) and
        whose genres contain every genre in ``movie_filter.genres``.

        An empty title and an empty genre list match every movie.
        """
        return self._list(movie_predicates(movie_filter), filters, timeout)


class AsyncMovieRepository(AsyncRepository[Movie]):
    """Async data access for the ``movies`` table."""

    table = MOVIES_TABLE
    model = Movie

    async def list(
        self,
        movie_filter: MovieFilter,
        filters: Filters,
        timeout: Optional[float] = None,
    ) -> Tuple[List[Movie], Metadata]:
        return await self._list(movie_predicates(movie_filter), filters, timeout)


__all__ = ["MovieRepository", "AsyncMovieRepository"]
