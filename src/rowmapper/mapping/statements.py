"""
SQL statement builders.

Builders are pure: they take a ``TableDescriptor`` (and a record or a filter)
and return a ``Statement`` holding the SQL text, its bound parameters and the
column type of each parameter. Placeholders use the psycopg ``%s`` style.

Identifiers come from validated descriptor metadata and are emitted as-is;
values always travel as parameters unless ``Statement.inline`` is asked to
render them as literals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel

from rowmapper.errors import SchemaError
from rowmapper.mapping.descriptor import KEY_COLUMN, ColumnType, TableDescriptor

PLACEHOLDER = "%s"

_OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE"})
_NULL_OPERATORS = {"=": "IS NULL", "!=": "IS NOT NULL", "<>": "IS NOT NULL"}


@dataclass(frozen=True)
class Statement:
    sql: str
    params: Tuple[Any, ...] = ()
    types: Tuple[ColumnType, ...] = ()

    def inline(self) -> "Statement":
        """
        Render every parameter into the SQL text as a literal.

        Text and date values are single-quoted with embedded quotes doubled.
        """
        if not self.params:
            return self
        parts = self.sql.split(PLACEHOLDER)
        if len(parts) - 1 != len(self.params):
            raise ValueError(
                f"statement has {len(parts) - 1} placeholders for {len(self.params)} params"
            )
        rendered = [parts[0]]
        for column_type, value, tail in zip(self.types, self.params, parts[1:]):
            rendered.append(column_type.literal(value))
            rendered.append(tail)
        return Statement("".join(rendered))


@dataclass(frozen=True)
class Condition:
    column: str
    operator: str
    value: Any


@dataclass(frozen=True)
class Filter:
    """
    A conjunction of ``column <op> value`` conditions with bound values.

    Build with ``where`` and combine with ``&``:

        where("age", "<", 18) & where("username", "LIKE", "j%")
    """

    conditions: Tuple[Condition, ...]

    def __and__(self, other: "Filter") -> "Filter":
        if not isinstance(other, Filter):
            return NotImplemented
        return Filter(self.conditions + other.conditions)

    def compile(self, descriptor: TableDescriptor) -> Tuple[str, Tuple[Any, ...], Tuple[ColumnType, ...]]:
        clauses: List[str] = []
        params: List[Any] = []
        types: List[ColumnType] = []
        for condition in self.conditions:
            field = descriptor.field_for(condition.column)
            if condition.value is None and condition.operator in _NULL_OPERATORS:
                clauses.append(f"{field.column} {_NULL_OPERATORS[condition.operator]}")
                continue
            if condition.operator == "LIKE" and field.type is not ColumnType.TEXT:
                raise SchemaError(f"LIKE needs a text column; '{field.column}' is {field.type.value}")
            try:
                value = field.type.bind(condition.value)
            except (TypeError, ValueError) as exc:
                raise SchemaError(
                    f"cannot compare {field.column} ({field.type.value}) with {condition.value!r}"
                ) from exc
            clauses.append(f"{field.column} {condition.operator} {PLACEHOLDER}")
            params.append(value)
            types.append(field.type)
        return "WHERE " + " AND ".join(clauses), tuple(params), tuple(types)


def where(column: str, operator: str, value: Any) -> Filter:
    """Build a single-condition filter; ``column`` is a field or column name."""
    op = operator.strip().upper()
    if op not in _OPERATORS:
        raise SchemaError(f"unsupported filter operator '{operator}'")
    return Filter((Condition(column, op, value),))


def build_insert(descriptor: TableDescriptor, record: BaseModel) -> Statement:
    """
    INSERT every non-key column and return the generated id.

    The key column is left to the database.
    """
    columns = descriptor.columns
    if not columns:
        return Statement(f"INSERT INTO {descriptor.table} DEFAULT VALUES RETURNING {KEY_COLUMN};")
    names = ", ".join(f.column for f in columns)
    placeholders = ", ".join(PLACEHOLDER for _ in columns)
    return Statement(
        f"INSERT INTO {descriptor.table} ({names}) VALUES ({placeholders}) RETURNING {KEY_COLUMN};",
        tuple(f.type.bind(getattr(record, f.name)) for f in columns),
        tuple(f.type for f in columns),
    )


def build_update(descriptor: TableDescriptor, record: BaseModel) -> Statement:
    """UPDATE every persisted field, key included, pinned by the key value."""
    assignments = ", ".join(f"{f.column} = {PLACEHOLDER}" for f in descriptor.fields)
    params = tuple(f.type.bind(getattr(record, f.name)) for f in descriptor.fields)
    types = tuple(f.type for f in descriptor.fields)
    key = descriptor.primary_key
    return Statement(
        f"UPDATE {descriptor.table} SET {assignments} WHERE {KEY_COLUMN} = {PLACEHOLDER};",
        params + (key.type.bind(descriptor.key_value(record)),),
        types + (key.type,),
    )


def build_select(
    descriptor: TableDescriptor, filter: Optional[Filter] = None, limit: Optional[int] = None
) -> Statement:
    sql = f"SELECT * FROM {descriptor.table}"
    params: Tuple[Any, ...] = ()
    types: Tuple[ColumnType, ...] = ()
    if filter is not None and not isinstance(filter, Filter):
        raise TypeError(
            f"filter must be built with where(), got {type(filter).__name__}; "
            "pass raw SQL clauses to find_unsafe instead"
        )
    if filter is not None and filter.conditions:
        clause, params, types = filter.compile(descriptor)
        sql += " " + clause
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    return Statement(sql + ";", params, types)


def build_raw_select(descriptor: TableDescriptor, clause: str, limit: Optional[int] = None) -> Statement:
    """
    SELECT with a caller-written clause appended verbatim.

    The clause is not validated or escaped; it is an injection surface.
    """
    sql = f"SELECT * FROM {descriptor.table}"
    clause = clause.strip().rstrip(";").strip()
    if clause:
        sql += " " + clause
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    return Statement(sql + ";")


__all__ = [
    "PLACEHOLDER",
    "Statement",
    "Condition",
    "Filter",
    "where",
    "build_insert",
    "build_update",
    "build_select",
    "build_raw_select",
]
