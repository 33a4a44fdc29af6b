"""
Schema descriptors: how a record type maps onto a table.

A record type is a pydantic model whose persisted fields are marked with
``typing.Annotated`` metadata:

    class User(BaseModel):
        __tablename__: ClassVar[str] = "users"

        id: Annotated[Optional[int], PrimaryKey()] = None
        username: Annotated[str, Column("username")] = ""

``describe`` inspects the model once and returns an immutable
``TableDescriptor``; results are cached per type.
"""

from __future__ import annotations

import re
import types
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Tuple, Type, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel

from rowmapper.errors import MappingError, SchemaError

KEY_COLUMN = "id"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class PrimaryKey:
    """Marks the single primary-key field; it is always stored in column ``id``."""


@dataclass(frozen=True)
class Column:
    """Marks a persisted field and names its column."""

    name: str


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


class ColumnType(str, Enum):
    """
    Semantic type of a column, resolved from the field annotation.

    Each variant has one bind rule (value handed to the driver), one literal
    rule (value rendered into SQL text) and one coercion rule (row value read
    back into the record).
    """

    INTEGER = "integer"
    TEXT = "text"
    DATE = "date"
    OTHER = "other"

    @classmethod
    def from_annotation(cls, annotation: Any) -> "ColumnType":
        annotation = _unwrap_optional(annotation)
        # bool is an int subclass and datetime a date subclass; neither maps here
        if annotation is bool or annotation is datetime:
            return cls.OTHER
        if annotation is int:
            return cls.INTEGER
        if annotation is str:
            return cls.TEXT
        if annotation is date:
            return cls.DATE
        return cls.OTHER

    def bind(self, value: Any) -> Any:
        if value is None:
            return None
        if self is ColumnType.INTEGER:
            return int(value)
        if self is ColumnType.TEXT:
            return str(value)
        return value

    def literal(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if self is ColumnType.TEXT:
            return _quote(str(value))
        if self is ColumnType.DATE:
            text = value.isoformat() if isinstance(value, date) else str(value)
            return _quote(text)
        if self is ColumnType.INTEGER:
            return str(int(value))
        return str(value)

    def coerce(self, raw: Any) -> Any:
        if self is ColumnType.OTHER:
            raise MappingError("columns of type 'other' cannot be read back")
        if raw is None:
            return None
        if self is ColumnType.INTEGER:
            return int(raw)
        if self is ColumnType.TEXT:
            return str(raw)
        if isinstance(raw, datetime):
            return raw.date()
        if isinstance(raw, date):
            return raw
        return date.fromisoformat(str(raw))


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    column: str
    type: ColumnType
    primary_key: bool = False


@dataclass(frozen=True)
class TableDescriptor:
    """
    Table name plus persisted fields in declaration order.

    Attributes
    ----------
    record_type : type
        The pydantic model this descriptor was built from.
    table : str
        Table name; ``__tablename__`` if declared, else the class name.
    fields : tuple[FieldDescriptor, ...]
        Every persisted field, key included, in declaration order.
    """

    record_type: Type[BaseModel]
    table: str
    fields: Tuple[FieldDescriptor, ...]

    @property
    def primary_key(self) -> FieldDescriptor:
        return next(f for f in self.fields if f.primary_key)

    @property
    def columns(self) -> Tuple[FieldDescriptor, ...]:
        """Persisted non-key fields."""
        return tuple(f for f in self.fields if not f.primary_key)

    def field_for(self, reference: str) -> FieldDescriptor:
        """Look up a field by its attribute name or its column name."""
        for field in self.fields:
            if reference in (field.name, field.column):
                return field
        raise SchemaError(f"{self.table} has no column '{reference}'")

    def key_value(self, record: BaseModel) -> Optional[int]:
        return getattr(record, self.primary_key.name)

    def is_new(self, record: BaseModel) -> bool:
        """A record without a positive key has never been stored."""
        value = self.key_value(record)
        return value is None or value <= 0


def _check_identifier(identifier: str, what: str) -> None:
    if not isinstance(identifier, str) or not _IDENTIFIER.match(identifier):
        raise SchemaError(f"{what} {identifier!r} is not a valid SQL identifier")


@lru_cache(maxsize=None)
def describe(record_type: Type[BaseModel]) -> TableDescriptor:
    """
    Build the table descriptor for a record type.

    Raises
    ------
    SchemaError
        If the type is not a pydantic model, declares no (or several) primary
        keys, or carries column metadata that cannot be used as SQL.
    """
    if not (isinstance(record_type, type) and issubclass(record_type, BaseModel)):
        raise SchemaError(f"{record_type!r} is not a pydantic model")
    name = record_type.__name__
    if record_type.model_config.get("frozen"):
        raise SchemaError(f"{name} is frozen; generated ids cannot be assigned to it")

    table = getattr(record_type, "__tablename__", None) or name
    _check_identifier(table, "table name")

    fields = []
    for field_name, info in record_type.model_fields.items():
        is_key = any(isinstance(marker, PrimaryKey) for marker in info.metadata)
        column = next((m for m in info.metadata if isinstance(m, Column)), None)
        if is_key and column is not None:
            raise SchemaError(f"{name}.{field_name} is marked both primary key and column")
        if is_key:
            if ColumnType.from_annotation(info.annotation) is not ColumnType.INTEGER:
                raise SchemaError(f"{name}.{field_name}: primary key must be an integer")
            fields.append(
                FieldDescriptor(field_name, KEY_COLUMN, ColumnType.INTEGER, primary_key=True)
            )
        elif column is not None:
            _check_identifier(column.name, f"column of {name}.{field_name}")
            if column.name == KEY_COLUMN:
                raise SchemaError(f"{name}.{field_name}: column '{KEY_COLUMN}' is reserved")
            fields.append(
                FieldDescriptor(field_name, column.name, ColumnType.from_annotation(info.annotation))
            )

    keys = [f for f in fields if f.primary_key]
    if not keys:
        raise SchemaError(f"{name}: no primary key declared")
    if len(keys) > 1:
        raise SchemaError(f"{name}: more than one primary key declared")
    seen = set()
    for field in fields:
        if field.column in seen:
            raise SchemaError(f"{name}: column '{field.column}' is mapped twice")
        seen.add(field.column)

    return TableDescriptor(record_type=record_type, table=table, fields=tuple(fields))


def entity(record_type: Type[M]) -> Type[M]:
    """Class decorator registering a record type; bad metadata fails at import."""
    describe(record_type)
    return record_type


__all__ = [
    "KEY_COLUMN",
    "PrimaryKey",
    "Column",
    "ColumnType",
    "FieldDescriptor",
    "TableDescriptor",
    "describe",
    "entity",
]
