"""
rowmapper: map pydantic records onto relational rows.
"""

from rowmapper.errors import (
    ExecutionError,
    MappingError,
    NotFoundError,
    RowMapperError,
    SchemaError,
)
from rowmapper.mapping import (
    Column,
    ColumnType,
    DbContext,
    EntityManager,
    Filter,
    PrimaryKey,
    describe,
    entity,
    where,
)

__version__ = "0.1.0"

__all__ = [
    "Column",
    "ColumnType",
    "DbContext",
    "EntityManager",
    "ExecutionError",
    "Filter",
    "MappingError",
    "NotFoundError",
    "PrimaryKey",
    "RowMapperError",
    "SchemaError",
    "describe",
    "entity",
    "where",
]
