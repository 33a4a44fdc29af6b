"""
Connection collaborator for the mapping engine.

The engine only needs two capabilities: run a statement and report how many
rows it touched, and run a query and hand back its rows with named-column
access. ``Connection`` states that contract; ``PsycopgConnection`` fulfils it
on top of a psycopg 3 connection.
"""

from __future__ import annotations

import threading
from typing import Any, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

import psycopg
from psycopg.rows import dict_row

from rowmapper.errors import ExecutionError

Row = Mapping[str, Any]


@runtime_checkable
class Connection(Protocol):
    """
    Synchronous statement runner used by ``EntityManager``.

    Implementations must raise ``ExecutionError`` when the database rejects a
    statement. Passing ``params=None`` means the SQL carries no placeholders.
    """

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Run a statement and return the affected row count."""
        ...

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
        """Run a query and return every row, in database order."""
        ...

    def close(self) -> None:
        ...


class PsycopgConnection:
    """
    ``Connection`` over a psycopg connection.

    Calls are serialized with a lock so threads sharing one handle never
    interleave statements. Each statement is its own unit of work: the
    wrapped connection is switched to autocommit.
    """

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn
        self._conn.autocommit = True
        self._lock = threading.Lock()

    @property
    def raw(self) -> psycopg.Connection:
        return self._conn

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        with self._lock:
            try:
                with self._conn.cursor() as cur:
                    cur.execute(sql, params or None)
                    return cur.rowcount
            except psycopg.Error as exc:
                raise ExecutionError(str(exc), statement=sql) from exc

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
        with self._lock:
            try:
                with self._conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(sql, params or None)
                    return cur.fetchall()
            except psycopg.Error as exc:
                raise ExecutionError(str(exc), statement=sql) from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()


__all__ = ["Row", "Connection", "PsycopgConnection"]
