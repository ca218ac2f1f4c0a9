# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tables backing the WOPI settings store.

Content and stamp live in two tables keyed by the settings file id.
SettingsStore always writes both in a single transaction.

Table Schemas:
    settings_content:
        - file_id: /settings/{type}/{category}/{name}.{ext} (primary key)
        - content: raw bytes
    settings_stamps:
        - file_id: same key as settings_content (primary key)
        - type: userconfig or systemconfig
        - category: second path segment (autotext, wordbook, ...)
        - stamp: opaque version marker, regenerated on every write
"""

from __future__ import annotations

from typing import Any

from ...sql import Blob, String, Table


class SettingsContentTable(Table):
    """Settings file content keyed by file id."""

    name = "settings_content"
    pkey = "file_id"

    def configure(self) -> None:
        c = self.columns
        c.column("file_id", String)
        c.column("content", Blob, nullable=False)

    async def get_content(self, file_id: str) -> bytes | None:
        row = await self.select_one(where={"file_id": file_id})
        return bytes(row["content"]) if row is not None else None


class SettingsStampsTable(Table):
    """Settings file stamps keyed by file id."""

    name = "settings_stamps"
    pkey = "file_id"

    def configure(self) -> None:
        c = self.columns
        c.column("file_id", String)
        c.column("type", String, nullable=False)
        c.column("category", String, nullable=False)
        c.column("stamp", String, nullable=False)

    async def list_by_prefix(self, prefix: str) -> list[dict[str, Any]]:
        """Rows whose file_id starts with prefix, ordered by file_id."""
        return await self.db.fetch_all(
            f'SELECT file_id, type, category, stamp FROM "{self.name}" '
            "WHERE substr(file_id, 1, length(:prefix)) = :prefix ORDER BY file_id",
            {"prefix": prefix},
        )


__all__ = ["SettingsContentTable", "SettingsStampsTable"]
