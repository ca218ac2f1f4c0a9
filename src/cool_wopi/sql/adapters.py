# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Database adapters for SqlDb.

Only SQLite is supported, through aiosqlite. Queries use named parameters
(``:name``) bound from a dict.

Writes outside a transaction are committed immediately. Inside
``async with adapter.transaction():`` they are committed together when
the block exits, or rolled back if it raises. Other tasks, readers
included, wait until the transaction ends.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite


class DbAdapter:
    """Interface implemented by database adapters."""

    async def connect(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def execute(self, query: str, params: dict[str, Any] | None = None) -> int:
        raise NotImplementedError

    async def fetch_one(
        self, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        raise NotImplementedError

    async def fetch_all(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        raise NotImplementedError

    def transaction(self) -> Any:
        raise NotImplementedError


class SqliteAdapter(DbAdapter):
    """aiosqlite-backed adapter with a single shared connection."""

    def __init__(self, path: str):
        self.path = path
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._tx_task: asyncio.Task | None = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    async def connect(self) -> None:
        if self._conn is not None:
            return
        self._conn = await aiosqlite.connect(self.path)
        self._conn.row_factory = aiosqlite.Row

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    def _in_own_transaction(self) -> bool:
        return self._tx_task is not None and self._tx_task is asyncio.current_task()

    async def execute(self, query: str, params: dict[str, Any] | None = None) -> int:
        if self._in_own_transaction():
            cursor = await self.conn.execute(query, params or {})
            return cursor.rowcount
        async with self._lock:
            cursor = await self.conn.execute(query, params or {})
            await self.conn.commit()
            return cursor.rowcount

    async def fetch_one(
        self, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        rows = await self._fetch(query, params, one=True)
        return rows[0] if rows else None

    async def fetch_all(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        return await self._fetch(query, params)

    async def _fetch(
        self, query: str, params: dict[str, Any] | None, one: bool = False
    ) -> list[dict[str, Any]]:
        if self._in_own_transaction():
            return await self._read(query, params, one)
        # Readers wait for another task's open transaction.
        async with self._lock:
            return await self._read(query, params, one)

    async def _read(
        self, query: str, params: dict[str, Any] | None, one: bool
    ) -> list[dict[str, Any]]:
        async with self.conn.execute(query, params or {}) as cursor:
            rows = [await cursor.fetchone()] if one else await cursor.fetchall()
        return [dict(row) for row in rows if row is not None]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Group writes so they are committed, or rolled back, together."""
        async with self._lock:
            self._tx_task = asyncio.current_task()
            try:
                yield
            except BaseException:
                await self.conn.rollback()
                raise
            else:
                await self.conn.commit()
            finally:
                self._tx_task = None


def get_adapter(connection_string: str) -> DbAdapter:
    """Return the adapter for a connection string.

    Accepts a plain path, ``:memory:``, or ``sqlite:<path>``.

    Raises:
        ValueError: Unsupported database scheme.
    """
    if connection_string.startswith(("postgresql://", "postgres://")):
        raise ValueError("Only SQLite databases are supported")
    if connection_string.startswith("sqlite:"):
        connection_string = connection_string[len("sqlite:") :]
    return SqliteAdapter(connection_string)


__all__ = ["DbAdapter", "SqliteAdapter", "get_adapter"]
