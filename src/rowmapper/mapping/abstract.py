"""
Persistence context interface.

``EntityManager`` implements ``DbContext``; code that only needs to persist and
look up records can depend on this protocol and accept any implementation,
including test doubles.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel

from rowmapper.mapping.statements import Filter

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class DbContext(Protocol):
    def persist(self, record: BaseModel) -> bool:
        """
        Insert a new record or update an existing one.

        Returns
        -------
        bool
            Whether the database reported the row as written.
        """
        ...

    def find(self, record_type: Type[M], filter: Optional[Filter] = None) -> List[M]:
        """Return every matching record in database order."""
        ...

    def find_first(self, record_type: Type[M], filter: Optional[Filter] = None) -> M:
        """Return the first matching record or raise ``NotFoundError``."""
        ...

    def find_unsafe(self, record_type: Type[M], clause: str) -> List[M]:
        """Like ``find`` with a raw SQL clause appended verbatim."""
        ...

    def find_first_unsafe(self, record_type: Type[M], clause: str) -> M:
        """Like ``find_first`` with a raw SQL clause appended verbatim."""
        ...


__all__ = ["DbContext"]
