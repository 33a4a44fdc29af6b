from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.table import Table

from rowmapper.mapping.descriptor import ColumnType, describe


def build_records_table(title: str, records: Sequence[BaseModel]) -> Table:
    """
    Build a rich table with one column per persisted field.

    Column headers are the table's column names, key first as declared.
    """
    table = Table(title=title, box=box.ROUNDED)
    if not records:
        table.caption = "No rows"
        return table

    descriptor = describe(type(records[0]))
    for field in descriptor.fields:
        if field.primary_key:
            table.add_column(field.column, justify="right", style="cyan", no_wrap=True)
        else:
            table.add_column(field.column, style="magenta" if field.type is ColumnType.TEXT else None)

    for record in records:
        values = [getattr(record, f.name) for f in descriptor.fields]
        table.add_row(*["" if value is None else str(value) for value in values])
    return table


def print_records(title: str, records: Sequence[BaseModel], console: Optional[Console] = None) -> None:
    """Render records as a rich table."""
    console = console or Console()
    console.print(build_records_table(title, records))


__all__ = ["build_records_table", "print_records"]
