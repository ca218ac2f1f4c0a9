# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SqlDb: one database connection plus the Table objects bound to it.

The settings store is the only consumer. Its two tables are registered at
proxy construction, created by check_structure() on start, and written
together inside transaction().

Usage:
    db = SqlDb(":memory:")
    db.add_table(SettingsContentTable)
    await db.connect()
    await db.check_structure()

    async with db.transaction():
        await db.table("settings_content").upsert({"file_id": ..., "content": b"..."})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .adapters import DbAdapter, get_adapter

if TYPE_CHECKING:
    from .table import Table


class SqlDb:
    """Registry of Table objects sharing one adapter.

    Attributes:
        connection_string: Path handed to get_adapter().
        adapter: The DbAdapter executing queries.
        tables: Registered Table instances keyed by table name.
    """

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        self.adapter: DbAdapter = get_adapter(connection_string)
        self.tables: dict[str, Table] = {}

    async def connect(self) -> None:
        await self.adapter.connect()

    async def close(self) -> None:
        await self.adapter.close()

    def add_table(self, table_class: type[Table]) -> Table:
        """Bind a Table subclass to this database.

        Raises:
            ValueError: The class has no ``name``.
        """
        if not getattr(table_class, "name", ""):
            raise ValueError(f"Table class {table_class.__name__} must define 'name'")
        table = table_class(self)
        self.tables[table.name] = table
        return table

    def table(self, name: str) -> Table:
        """Registered table by name.

        Raises:
            ValueError: Nothing registered under that name.
        """
        try:
            return self.tables[name]
        except KeyError:
            raise ValueError(f"Table '{name}' not registered. Use add_table() first.") from None

    async def check_structure(self) -> None:
        """CREATE every registered table that is missing."""
        for table in self.tables.values():
            await table.create_schema()

    def transaction(self) -> Any:
        """Async context manager committing the enclosed writes together."""
        return self.adapter.transaction()

    async def execute(self, query: str, params: dict[str, Any] | None = None) -> int:
        return await self.adapter.execute(query, params)

    async def fetch_one(
        self, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        return await self.adapter.fetch_one(query, params)

    async def fetch_all(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        return await self.adapter.fetch_all(query, params)


__all__ = ["SqlDb"]
