# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Fetch, parse and cache the Collabora Online discovery document.

DiscoveryLoader.get_discovery() answers from the cache while the entry is
live. On a miss it performs one HTTP GET on ``{server_url}/hosting/discovery``,
parses the body and stores the result for ``discovery_max_age`` seconds.

Cache entries are tagged with:
    - CONFIG_CACHE_TAG, invalidated by WopiProxy.update_config()
    - a fingerprint of the fetch-relevant configuration, so an entry
      fetched from another server address is never served

Concurrent misses may each fetch; the fetch is idempotent and rare.

Example:
    ::

        loader = DiscoveryLoader(config)
        discovery = await loader.get_discovery()
        url = discovery.get_client_url("text/plain", "edit")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from ..exceptions import CollaboraNotAvailableError
from ..wopi_config import WopiConfig
from .cache import CacheBackend, MemoryCacheBackend
from .discovery import Discovery, parse_discovery

logger = logging.getLogger(__name__)

DEFAULT_CID = "cool_wopi.discovery"
CONFIG_CACHE_TAG = "config:cool_wopi"
DISCOVERY_PATH = "/hosting/discovery"


def _fingerprint_tag(config: WopiConfig) -> str:
    return f"fingerprint:{config.fetch_fingerprint()}"


class DiscoveryLoader:
    """Loads the discovery document with caching.

    Attributes:
        config: WopiConfig providing server_url, TLS and cache settings.
        cache: Cache backend holding at most one entry under ``cid``.
        fetch_count: Number of outbound fetches performed (diagnostics).
    """

    def __init__(
        self,
        config: WopiConfig,
        cache: CacheBackend | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        time_func: Callable[[], float] = time.time,
        cid: str = DEFAULT_CID,
    ):
        """Initialize the loader.

        Args:
            config: Configuration to read the server address from.
            cache: Cache backend. Defaults to an in-process memory cache.
            transport: Optional httpx transport (tests use httpx.MockTransport).
            time_func: Clock returning Unix seconds.
            cid: Cache key of the single discovery entry.
        """
        self.config = config
        self._time = time_func
        self.cache = cache if cache is not None else MemoryCacheBackend(time_func)
        self._transport = transport
        self.cid = cid
        self.fetch_count = 0

    async def get_discovery(self) -> Discovery:
        """Return the current discovery, fetching it on a cache miss.

        Raises:
            CollaboraNotAvailableError: Server unreachable, misconfigured,
                or the document is empty or malformed.
        """
        fingerprint = _fingerprint_tag(self.config)
        cached = self.cache.get(self.cid)
        if cached is not None and fingerprint in cached.tags:
            logger.debug("Discovery served from cache")
            return cached.data

        discovery = await self.load_discovery()

        max_age = self.config.discovery_max_age
        if max_age > 0:
            self.cache.set(
                self.cid,
                discovery,
                expire=self._time() + max_age,
                tags=[CONFIG_CACHE_TAG, fingerprint],
            )
        return discovery

    async def load_discovery(self) -> Discovery:
        """Fetch and parse the discovery document, bypassing the cache."""
        xml = await self.fetch_discovery_xml()
        return parse_discovery(xml)

    def discovery_url(self) -> str:
        """Build the discovery URL from the configured server address.

        Raises:
            CollaboraNotAvailableError: Address empty or not http(s).
        """
        server = self.config.server_url.strip().rstrip("/")
        if not server:
            raise CollaboraNotAvailableError(
                "The Collabora Online server address is not configured."
            )
        if not server.startswith(("http://", "https://")):
            raise CollaboraNotAvailableError(
                "The configured Collabora Online server address must begin with "
                f"'http://' or 'https://'. Found '{server}'."
            )
        return server + DISCOVERY_PATH

    async def fetch_discovery_xml(self) -> str:
        """GET the discovery document and return its body.

        Raises:
            CollaboraNotAvailableError: Transport failure or non-2xx status.
        """
        url = self.discovery_url()
        self.fetch_count += 1
        try:
            async with httpx.AsyncClient(
                verify=not self.config.disable_cert_check,
                timeout=self.config.http_timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch from '{url}': {e}.")
            raise CollaboraNotAvailableError(
                "Not able to retrieve the discovery.xml file from the Collabora Online server."
            ) from e
        logger.info(f"Fetched discovery from '{url}'")
        return response.text

    def invalidate(self) -> None:
        """Drop the cached discovery, forcing a fetch on next use."""
        self.cache.invalidate_tags([CONFIG_CACHE_TAG])


__all__ = ["CONFIG_CACHE_TAG", "DEFAULT_CID", "DISCOVERY_PATH", "DiscoveryLoader"]
