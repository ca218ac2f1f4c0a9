# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table base class with declarative columns, upsert and keyed lookup.

Example:
    ::

        class NotesTable(Table):
            name = "notes"
            pkey = "id"

            def configure(self) -> None:
                c = self.columns
                c.column("id", String)
                c.column("body", Blob)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .sqldb import SqlDb

String = "TEXT"
Blob = "BLOB"


@dataclass
class Column:
    """Column definition."""

    name: str
    sql_type: str
    nullable: bool = True


class Columns(dict[str, Column]):
    """Ordered column registry of a table."""

    def column(self, name: str, sql_type: str, nullable: bool = True) -> Column:
        col = Column(name, sql_type, nullable=nullable)
        self[name] = col
        return col


def _where_clause(where: dict[str, Any] | None) -> tuple[str, dict[str, Any]]:
    if not where:
        return "", {}
    parts = [f'"{key}" = :w_{key}' for key in where]
    return " WHERE " + " AND ".join(parts), {f"w_{k}": v for k, v in where.items()}


class Table:
    """Base class for table managers.

    Attributes:
        name: Table name, set by subclasses.
        pkey: Primary key column.
        db: Owning SqlDb.
        columns: Columns declared in configure().
    """

    name: str = ""
    pkey: str = "id"

    def __init__(self, db: SqlDb):
        self.db = db
        self.columns = Columns()
        self.configure()

    def configure(self) -> None:
        """Declare columns. Subclasses must override."""
        raise NotImplementedError

    async def create_schema(self) -> None:
        """CREATE TABLE IF NOT EXISTS from the declared columns."""
        defs = []
        for col in self.columns.values():
            definition = f'"{col.name}" {col.sql_type}'
            if col.name == self.pkey:
                definition += " PRIMARY KEY"
            elif not col.nullable:
                definition += " NOT NULL"
            defs.append(definition)
        await self.db.execute(f'CREATE TABLE IF NOT EXISTS "{self.name}" ({", ".join(defs)})')

    async def upsert(self, data: dict[str, Any]) -> int:
        """Insert a row, or update it when the primary key already exists."""
        cols = ", ".join(f'"{k}"' for k in data)
        values = ", ".join(f":{k}" for k in data)
        updates = ", ".join(f'"{k}" = excluded."{k}"' for k in data if k != self.pkey)
        query = (
            f'INSERT INTO "{self.name}" ({cols}) VALUES ({values}) '
            f'ON CONFLICT("{self.pkey}") DO UPDATE SET {updates}'
        )
        return await self.db.execute(query, data)

    async def select_one(self, where: dict[str, Any]) -> dict[str, Any] | None:
        clause, params = _where_clause(where)
        return await self.db.fetch_one(f'SELECT * FROM "{self.name}"{clause} LIMIT 1', params)


__all__ = ["Blob", "Column", "Columns", "String", "Table"]
