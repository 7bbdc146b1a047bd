"""
Database package for recordstore.

Statement rendering, table descriptions and list filters. Nothing here
touches a connection; execution lives in ``recordstore.repositories``.
"""

from recordstore.database.filters import (
    MOVIE_SORT_SAFELIST,
    USER_SORT_SAFELIST,
    Filters,
    Metadata,
    MovieFilter,
    UserFilter,
)
from recordstore.database.query_builder import Predicate, QueryBuilder, Statement, TableSpec
from recordstore.database.tables import (
    MOVIES_TABLE,
    USERS_TABLE,
    email_predicate,
    movie_predicates,
    user_predicates,
)

__all__ = [
    # Filters
    "Filters",
    "Metadata",
    "MovieFilter",
    "UserFilter",
    "MOVIE_SORT_SAFELIST",
    "USER_SORT_SAFELIST",
    # Statements
    "Predicate",
    "QueryBuilder",
    "Statement",
    "TableSpec",
    # Tables
    "MOVIES_TABLE",
    "USERS_TABLE",
    "email_predicate",
    "movie_predicates",
    "user_predicates",
]
