"""
Domain models for recordstore.

Every persisted resource is a ``VersionedRecord``: a store-assigned ``id`` and
``created_at``, a set of mutable business fields, and a ``version`` counter
that starts at 1 and is bumped by exactly one on each successful update.

Creation inputs (``NewMovie``, ``NewUser``) are copied onto a fresh record;
partial updates (``MovieUpdate``, ``UserUpdate``) are merged using pydantic's
``model_fields_set`` so that a field which was never sent is distinguishable
from a field sent with an empty value.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer

from recordstore.domain.validator import EMAIL_RX, Validator, matches, unique

# ASCII digits only; int() alone also takes "_", padding and other scripts.
_RUNTIME_MINUTES_RX = re.compile(r"[+-]?[0-9]+")


def _parse_runtime(value: Any) -> Any:
    """Accept an integer number of minutes or the string form ``"<n> mins"``."""
    if isinstance(value, bool):
        raise ValueError("invalid runtime format")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        parts = value.split(" ")
        if len(parts) == 2 and parts[1] == "mins" and _RUNTIME_MINUTES_RX.fullmatch(parts[0]):
            return int(parts[0])
    raise ValueError("invalid runtime format")


def _format_runtime(value: int) -> str:
    return f"{value} mins"


Runtime = Annotated[
    int,
    BeforeValidator(_parse_runtime),
    PlainSerializer(_format_runtime, return_type=str, when_used="json"),
]
"""Movie runtime in minutes, rendered as ``"<n> mins"`` in JSON."""


class VersionedRecord(BaseModel):
    """
    Base shape shared by every persisted resource.

    Subclasses list their mutable columns in ``business_fields``; the order is
    the column order used by the query builder.
    """

    business_fields: ClassVar[Tuple[str, ...]] = ()

    id: int = Field(0, description="Primary key, assigned by the store.")
    created_at: Optional[datetime] = Field(None, description="Insert timestamp, assigned by the store.")
    version: int = Field(0, description="Optimistic concurrency token; 1 after insert.")

    def business_values(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self.business_fields)

    def apply(self, update: BaseModel) -> "VersionedRecord":
        """
        Merge a partial update into this record in place.

        Only fields explicitly present in the update (and not null) overwrite
        the current values.
        """
        for name in self.business_fields:
            if name not in update.model_fields_set:
                continue
            value = getattr(update, name)
            if value is not None:
                setattr(self, name, value)
        return self


# --------------------------------------------------------------------------- movies


class NewMovie(BaseModel):
    """Information needed to create a movie."""

    title: str = ""
    year: int = 0
    runtime: Runtime = 0
    genres: Optional[List[str]] = None


class MovieUpdate(BaseModel):
    """Partial movie update; every field is optional."""

    title: Optional[str] = None
    year: Optional[int] = None
    runtime: Optional[Runtime] = None
    genres: Optional[List[str]] = None


class Movie(VersionedRecord):
    """Representation of a single row in the ``movies`` table."""

    business_fields: ClassVar[Tuple[str, ...]] = ("title", "year", "runtime", "genres")

    created_at: Optional[datetime] = Field(None, exclude=True)
    title: str = ""
    year: int = 0
    runtime: Runtime = 0
    genres: Optional[List[str]] = None

    @classmethod
    def from_new(cls, new: NewMovie) -> "Movie":
        return cls(title=new.title, year=new.year, runtime=new.runtime, genres=new.genres)

    def validate_record(self, v: Validator) -> None:
        v.check(self.title != "", "title", "must be provided")
        v.check(len(self.title.encode("utf-8")) <= 500, "title", "must not be more than 500 bytes long")

        v.check(self.year != 0, "year", "must be provided")
        v.check(self.year >= 1888, "year", "must be greater than 1888")
        v.check(self.year <= datetime.now(timezone.utc).year, "year", "must not be in the future")

        v.check(self.runtime != 0, "runtime", "must be provided")
        v.check(self.runtime > 0, "runtime", "must be a positive integer")

        v.check(self.genres is not None, "genres", "must be provided")
        genres = self.genres or []
        v.check(len(genres) >= 1, "genres", "must contain at least 1 genre")
        v.check(len(genres) <= 5, "genres", "must not contain more than 5 genres")
        v.check(unique(genres), "genres", "must not contain duplicate values")


# --------------------------------------------------------------------------- users


class NewUser(BaseModel):
    """Information needed to register a user."""

    name: str = ""
    email: str = ""
    password: str = ""


class UserUpdate(BaseModel):
    """Partial user update; every field is optional."""

    name: Optional[str] = None
    email: Optional[str] = None
    password_hash: Optional[bytes] = None
    activated: Optional[bool] = None


class User(VersionedRecord):
    """Representation of a single row in the ``users`` table."""

    business_fields: ClassVar[Tuple[str, ...]] = ("name", "email", "password_hash", "activated")

    name: str = ""
    email: str = ""
    password_hash: Optional[bytes] = Field(None, exclude=True)
    activated: bool = False
    version: int = Field(0, exclude=True)

    @classmethod
    def from_new(cls, new: NewUser, password_hash: bytes) -> "User":
        """
        Build a user from registration input.

        Password hashing happens outside this package; the caller passes the
        finished hash.
        """
        return cls(name=new.name, email=new.email, password_hash=password_hash, activated=False)

    def validate_record(self, v: Validator, password: Optional[str] = None) -> None:
        v.check(self.name != "", "name", "must be provided")
        v.check(len(self.name.encode("utf-8")) <= 500, "name", "must not be more than 500 bytes long")

        validate_email(v, self.email)

        if password is not None:
            validate_password_plaintext(v, password)

        if self.password_hash is None:
            raise ValueError("missing password hash for user")


def validate_email(v: Validator, email: str) -> None:
    v.check(email != "", "email", "must be provided")
    v.check(matches(email, EMAIL_RX), "email", "must be a valid email address")


def validate_password_plaintext(v: Validator, password: str) -> None:
    size = len(password.encode("utf-8"))
    v.check(password != "", "password", "must be provided")
    v.check(size >= 8, "password", "must be at least 8 bytes long")
    v.check(size <= 72, "password", "must not be more than 72 bytes long")


__all__ = [
    "Runtime",
    "VersionedRecord",
    "NewMovie",
    "MovieUpdate",
    "Movie",
    "NewUser",
    "UserUpdate",
    "User",
    "validate_email",
    "validate_password_plaintext",
]
