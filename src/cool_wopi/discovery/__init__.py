# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Collabora Online discovery: parsing, caching and client URL lookup.

Components:
    Discovery: Immutable parsed discovery document.
    parse_discovery: XML to Discovery.
    DiscoveryLoader: HTTP fetch with tag-aware TTL caching.
    MemoryCacheBackend: Default in-process cache backend.
"""

from .cache import PERMANENT, CacheBackend, CacheItem, MemoryCacheBackend
from .discovery import Discovery, parse_discovery
from .loader import CONFIG_CACHE_TAG, DiscoveryLoader

__all__ = [
    "CONFIG_CACHE_TAG",
    "PERMANENT",
    "CacheBackend",
    "CacheItem",
    "Discovery",
    "DiscoveryLoader",
    "MemoryCacheBackend",
    "parse_discovery",
]
