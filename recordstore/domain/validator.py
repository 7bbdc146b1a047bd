"""
Field-level validation helpers.

A ``Validator`` collects a field -> message mapping. Records and filters add
their checks to it; callers inspect ``valid`` and ``errors`` afterwards.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Pattern

EMAIL_RX: Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


class Validator:
    """Accumulates validation errors keyed by field name."""

    def __init__(self) -> None:
        self.errors: Dict[str, str] = {}

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        # The first failing rule for a field is the one reported.
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)


def permitted_value(value: Any, *permitted: Any) -> bool:
    return value in permitted


def unique(values: Iterable[Any]) -> bool:
    items = list(values)
    return len(set(items)) == len(items)


def matches(value: str, rx: Pattern[str]) -> bool:
    return rx.match(value) is not None


__all__ = ["EMAIL_RX", "Validator", "permitted_value", "unique", "matches"]
