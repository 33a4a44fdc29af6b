"""
Domain models used by the rowmapper CLI demo.

Defines the ``users`` record schema aligned with `db/init.sql`.
"""
from __future__ import annotations

from datetime import date
from typing import Annotated, ClassVar, Optional

from pydantic import BaseModel, Field

from rowmapper.mapping.descriptor import Column, PrimaryKey, entity


@entity
class User(BaseModel):
    """
    Representation of a single row in the `users` table.
    """

    __tablename__: ClassVar[str] = "users"

    id: Annotated[Optional[int], PrimaryKey()] = Field(None, description="Primary key (SERIAL).")
    username: Annotated[str, Column("username")] = Field("", description="Login name.")
    password: Annotated[str, Column("password")] = Field("", description="Stored password.")
    age: Annotated[int, Column("age")] = Field(0, description="Age in years.")
    registration_date: Annotated[Optional[date], Column("registration_date")] = Field(
        None, description="Calendar date the user registered."
    )


__all__ = ["User"]
