"""
Table descriptions and list predicates for each resource.

The column tuples mirror ``db/init.sql`` and the ``business_fields`` of the
matching domain model.
"""
from __future__ import annotations

from typing import List

from recordstore.database.filters import MovieFilter, UserFilter
from recordstore.database.query_builder import Predicate, TableSpec
from recordstore.domain.models import Movie, User

MOVIES_TABLE = TableSpec(
    name="movies",
    columns=Movie.business_fields,
)

USERS_TABLE = TableSpec(
    name="users",
    columns=User.business_fields,
    unique_constraints={"users_email_key": "email"},
)


def movie_predicates(movie_filter: MovieFilter) -> List[Predicate]:
    """Full-text title match and genre containment; both empty means everything."""
    return [
        Predicate(
            "({value}::text = '' OR title_search @@ plainto_tsquery('simple', {value}::text))",
            movie_filter.title,
        ),
        Predicate(
            "(cardinality({value}::text[]) = 0 OR genres @> {value}::text[])",
            list(movie_filter.genres),
        ),
    ]


def user_predicates(user_filter: UserFilter) -> List[Predicate]:
    """Exact matches on email and activation; ``None`` means no constraint."""
    return [
        Predicate("({value}::text IS NULL OR lower(email) = lower({value}::text))", user_filter.email),
        Predicate("({value}::boolean IS NULL OR activated = {value}::boolean)", user_filter.activated),
    ]


def email_predicate(email: str) -> Predicate:
    """Case-insensitive email match, backed by the unique index on ``lower(email)``."""
    return Predicate("lower(email) = lower({value}::text)", email)


__all__ = ["MOVIES_TABLE", "USERS_TABLE", "email_predicate", "movie_predicates", "user_predicates"]
