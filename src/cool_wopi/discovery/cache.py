# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tag-aware expiring cache backend.

A minimal cache with absolute expiry and invalidation tags. The discovery
loader keeps a single entry in it. Any shared store offering the same
three operations (get/set/invalidate_tags) can replace it, since the
loader only relies on this interface.

Example:
    ::

        cache = MemoryCacheBackend()
        cache.set("key", value, expire=time.time() + 60, tags=["config:wopi"])
        item = cache.get("key")
        cache.invalidate_tags(["config:wopi"])
        assert cache.get("key") is None
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

PERMANENT = -1
"""Expiry value for entries that never expire by time."""


@dataclass
class CacheItem:
    """A cached value with its expiry and tags."""

    data: Any
    expire: float
    tags: frozenset[str] = field(default_factory=frozenset)

    def is_live(self, now: float) -> bool:
        """True while the entry has not reached its expiry."""
        return self.expire == PERMANENT or now < self.expire


class CacheBackend(Protocol):
    """Operations the discovery loader needs from a cache."""

    def get(self, cid: str) -> CacheItem | None: ...

    def set(
        self, cid: str, data: Any, expire: float = PERMANENT, tags: Iterable[str] = ()
    ) -> None: ...

    def delete(self, cid: str) -> None: ...

    def invalidate_tags(self, tags: Iterable[str]) -> None: ...


class MemoryCacheBackend:
    """In-process implementation of CacheBackend.

    Last write wins. No locking is needed because every operation is a
    single dict access on the event loop thread.
    """

    def __init__(self, time_func: Callable[[], float] = time.time):
        self._items: dict[str, CacheItem] = {}
        self._time = time_func

    def get(self, cid: str) -> CacheItem | None:
        item = self._items.get(cid)
        if item is None:
            return None
        if not item.is_live(self._time()):
            del self._items[cid]
            return None
        return item

    def set(
        self, cid: str, data: Any, expire: float = PERMANENT, tags: Iterable[str] = ()
    ) -> None:
        self._items[cid] = CacheItem(data=data, expire=expire, tags=frozenset(tags))

    def delete(self, cid: str) -> None:
        self._items.pop(cid, None)

    def invalidate_tags(self, tags: Iterable[str]) -> None:
        """Drop every entry carrying at least one of the given tags."""
        wanted = set(tags)
        for cid in [cid for cid, item in self._items.items() if item.tags & wanted]:
            del self._items[cid]

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["PERMANENT", "CacheBackend", "CacheItem", "MemoryCacheBackend"]
