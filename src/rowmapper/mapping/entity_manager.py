"""
The mapping engine.

``EntityManager`` persists pydantic records and reads them back through an
injected ``Connection``. Records with no key, or a key ``<= 0``, are inserted
and receive the id the database generated; records with a positive key are
updated in place by that id.

Usage:
    from rowmapper import EntityManager, where
    from rowmapper.infrastructure.db_factory import open_connection

    with open_connection() as conn:
        em = EntityManager(conn)
        em.persist(user)
        minors = em.find(User, where("age", "<", 18))
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from rowmapper.config import get_settings
from rowmapper.errors import MappingError, NotFoundError
from rowmapper.infrastructure.connection import Connection, Row
from rowmapper.mapping.descriptor import KEY_COLUMN, TableDescriptor, describe
from rowmapper.mapping.statements import (
    Filter,
    Statement,
    build_insert,
    build_raw_select,
    build_select,
    build_update,
)
from rowmapper.utils.logging import get_logger

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class EntityManager:
    """
    Persist and load records over a single connection.

    Parameters
    ----------
    connection : Connection
        The statement runner; owned by the caller, never closed here.
    inline_literals : bool, optional
        Render values into the SQL text instead of binding them. Defaults to
        ``Settings.inline_literals``.
    """

    def __init__(self, connection: Connection, inline_literals: Optional[bool] = None) -> None:
        self._connection = connection
        if inline_literals is None:
            inline_literals = get_settings().inline_literals
        self._inline_literals = inline_literals

    # Write path

    def persist(self, record: BaseModel) -> bool:
        descriptor = describe(type(record))
        if descriptor.is_new(record):
            return self._insert(descriptor, record)
        return self._update(descriptor, record)

    def _insert(self, descriptor: TableDescriptor, record: BaseModel) -> bool:
        rows = self._query(descriptor, build_insert(descriptor, record))
        if not rows:
            return False
        key = descriptor.primary_key
        new_id = key.type.coerce(rows[0][KEY_COLUMN])
        setattr(record, key.name, new_id)
        log.info(f"Inserted {descriptor.table} row", extra={"table": descriptor.table, "id": new_id})
        return True

    def _update(self, descriptor: TableDescriptor, record: BaseModel) -> bool:
        affected = self._execute(descriptor, build_update(descriptor, record))
        key_value = descriptor.key_value(record)
        if affected <= 0:
            log.warning(
                f"Update matched no {descriptor.table} row",
                extra={"table": descriptor.table, "id": key_value},
            )
            return False
        log.info(f"Updated {descriptor.table} row", extra={"table": descriptor.table, "id": key_value})
        return True

    # Read path

    def find(self, record_type: Type[M], filter: Optional[Filter] = None) -> List[M]:
        descriptor = describe(record_type)
        rows = self._query(descriptor, build_select(descriptor, filter))
        return [self._materialize(descriptor, row) for row in rows]

    def find_first(self, record_type: Type[M], filter: Optional[Filter] = None) -> M:
        descriptor = describe(record_type)
        rows = self._query(descriptor, build_select(descriptor, filter, limit=1))
        return self._first(descriptor, rows)

    def find_unsafe(self, record_type: Type[M], clause: str) -> List[M]:
        """
        Find records narrowed by a raw SQL clause, e.g. ``"where age < 18"``.

        The clause is appended to the query verbatim. Never build it from
        untrusted input; use ``find`` with a ``Filter`` instead.
        """
        descriptor = describe(record_type)
        rows = self._query(descriptor, build_raw_select(descriptor, clause))
        return [self._materialize(descriptor, row) for row in rows]

    def find_first_unsafe(self, record_type: Type[M], clause: str) -> M:
        """Raw-clause counterpart of ``find_first``; same caveats as ``find_unsafe``."""
        descriptor = describe(record_type)
        rows = self._query(descriptor, build_raw_select(descriptor, clause, limit=1))
        return self._first(descriptor, rows)

    def _first(self, descriptor: TableDescriptor, rows: List[Row]) -> Any:
        if not rows:
            raise NotFoundError(f"no {descriptor.table} row matched")
        return self._materialize(descriptor, rows[0])

    def _materialize(self, descriptor: TableDescriptor, row: Mapping[str, Any]) -> Any:
        values = {}
        for field in descriptor.fields:
            if field.column not in row:
                raise MappingError(f"{descriptor.table}: result has no column '{field.column}'")
            try:
                values[field.name] = field.type.coerce(row[field.column])
            except MappingError as exc:
                raise MappingError(f"{descriptor.table}.{field.column}: {exc}") from exc
            except (TypeError, ValueError) as exc:
                raise MappingError(
                    f"{descriptor.table}.{field.column}: cannot read {row[field.column]!r} "
                    f"as {field.type.value}"
                ) from exc
        try:
            return descriptor.record_type.model_validate(values)
        except ValidationError as exc:
            raise MappingError(f"{descriptor.table}: row does not fit {descriptor.record_type.__name__}") from exc

    # Connection boundary

    def _prepare(self, descriptor: TableDescriptor, statement: Statement) -> Statement:
        if self._inline_literals:
            statement = statement.inline()
        log.debug(
            "Executing statement",
            extra={"table": descriptor.table, "sql": statement.sql, "params": len(statement.params)},
        )
        return statement

    def _execute(self, descriptor: TableDescriptor, statement: Statement) -> int:
        statement = self._prepare(descriptor, statement)
        return self._connection.execute(statement.sql, statement.params or None)

    def _query(self, descriptor: TableDescriptor, statement: Statement) -> List[Row]:
        statement = self._prepare(descriptor, statement)
        return list(self._connection.query(statement.sql, statement.params or None))


__all__ = ["EntityManager"]
