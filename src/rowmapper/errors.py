"""
Exception hierarchy for rowmapper.

Every error raised by the mapping engine derives from ``RowMapperError`` so
callers can catch the whole family, or branch on the specific kind:

- ``SchemaError``: record metadata is unusable; raised before any I/O.
- ``ExecutionError``: the driver rejected a statement.
- ``MappingError``: a result row could not be turned into a record.
- ``NotFoundError``: a singular find matched no row.
"""

from __future__ import annotations

from typing import Optional


class RowMapperError(Exception):
    """Base class for all rowmapper errors."""


class SchemaError(RowMapperError):
    """Raised when a record type cannot be described as a table."""


class ExecutionError(RowMapperError):
    """
    Raised when the connection fails to run a statement.

    The driver exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, statement: Optional[str] = None) -> None:
        super().__init__(message)
        self.statement = statement


class MappingError(RowMapperError):
    """Raised when a result row cannot be materialized into a record."""


class NotFoundError(RowMapperError):
    """Raised by singular finders when the result set is empty."""


__all__ = [
    "RowMapperError",
    "SchemaError",
    "ExecutionError",
    "MappingError",
    "NotFoundError",
]
