# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Versioned key/value store for Collabora Online settings files.

Collabora Online keeps user and shared settings (autotext, wordbook,
browser settings, ...) on the host through the WOPI settings extension.
Each file is identified by a path-like id::

    /settings/{userconfig|systemconfig}/{category}/{name}.{ext}

Every write generates a new opaque stamp. Clients compare stamps from
list() to know which files to download again.

Example:
    ::

        store = SettingsStore(db)
        stamp = await store.write("/settings/userconfig/wordbook/standard.dic", b"...")
        await store.list("/settings/userconfig/")
        # {"/settings/userconfig/wordbook/standard.dic": stamp}
"""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...exceptions import InvalidRequestError

if TYPE_CHECKING:
    from ...sql import SqlDb

logger = logging.getLogger(__name__)

SETTINGS_TYPES = ("userconfig", "systemconfig")

_FILE_ID_RE = re.compile(r"/settings/(userconfig|systemconfig)/(\w+)/(\w+\.\w+)", re.ASCII)


def _new_stamp() -> str:
    return secrets.token_hex(16)


@dataclass(frozen=True)
class SettingsFileId:
    """Parsed settings file id."""

    value: str
    type: str
    category: str
    filename: str

    @classmethod
    def parse(cls, value: str) -> SettingsFileId:
        """Validate and split a settings file id.

        Raises:
            InvalidRequestError: The id does not match the settings layout.
        """
        match = _FILE_ID_RE.fullmatch(value or "")
        if match is None:
            raise InvalidRequestError("Invalid WOPI file id.")
        return cls(value, match.group(1), match.group(2), match.group(3))


class SettingsStore:
    """list/read/write over the settings_content and settings_stamps tables."""

    def __init__(self, db: SqlDb, stamp_factory: Callable[[], str] = _new_stamp):
        self.db = db
        self._stamp_factory = stamp_factory

    @property
    def contents(self):
        return self.db.table("settings_content")

    @property
    def stamps(self):
        return self.db.table("settings_stamps")

    async def list(self, prefix: str) -> dict[str, str]:
        """Map of file id to stamp for every file under prefix."""
        rows = await self.stamps.list_by_prefix(prefix)
        return {row["file_id"]: row["stamp"] for row in rows}

    async def list_type(self, settings_type: str) -> dict[str, str]:
        """Map of file id to stamp for one settings type.

        Raises:
            InvalidRequestError: Unknown settings type.
        """
        if settings_type not in SETTINGS_TYPES:
            raise InvalidRequestError(f"Invalid settings type '{settings_type}'.")
        return await self.list(f"/settings/{settings_type}/")

    async def read(self, file_id: str) -> bytes | None:
        """Content of a settings file, or None if it was never written."""
        return await self.contents.get_content(file_id)

    async def get_stamp(self, file_id: str) -> str | None:
        row = await self.stamps.select_one(where={"file_id": file_id})
        return row["stamp"] if row is not None else None

    async def write(self, file_id: str, content: bytes) -> str:
        """Store content under a fresh stamp.

        Returns:
            The new stamp.

        Raises:
            InvalidRequestError: Malformed file id.
        """
        parsed = SettingsFileId.parse(file_id)
        stamp = self._stamp_factory()
        async with self.db.transaction():
            await self.contents.upsert({"file_id": file_id, "content": content})
            await self.stamps.upsert(
                {
                    "file_id": file_id,
                    "type": parsed.type,
                    "category": parsed.category,
                    "stamp": stamp,
                }
            )
        logger.debug(f"Settings file '{file_id}' stored with stamp {stamp}")
        return stamp


__all__ = ["SETTINGS_TYPES", "SettingsFileId", "SettingsStore"]
