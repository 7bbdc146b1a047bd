"""
Utilities package for recordstore.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from recordstore.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
]
