from rowmapper.mapping.abstract import DbContext
from rowmapper.mapping.descriptor import (
    Column,
    ColumnType,
    FieldDescriptor,
    PrimaryKey,
    TableDescriptor,
    describe,
    entity,
)
from rowmapper.mapping.entity_manager import EntityManager
from rowmapper.mapping.statements import Filter, Statement, where

__all__ = [
    "Column",
    "ColumnType",
    "DbContext",
    "EntityManager",
    "FieldDescriptor",
    "Filter",
    "PrimaryKey",
    "Statement",
    "TableDescriptor",
    "describe",
    "entity",
    "where",
]
