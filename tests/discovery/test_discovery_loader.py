# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for DiscoveryLoader: fetch, caching and invalidation."""

import httpx
import pytest

from cool_wopi.discovery import CONFIG_CACHE_TAG, DiscoveryLoader, MemoryCacheBackend
from cool_wopi.exceptions import CollaboraNotAvailableError
from cool_wopi.wopi_config import WopiConfig


@pytest.fixture
def loader_config():
    return WopiConfig(server_url="https://cool.test/", discovery_max_age=3600)


@pytest.fixture
def loader(loader_config, discovery_transport, clock):
    return DiscoveryLoader(loader_config, transport=discovery_transport, time_func=clock)


class TestDiscoveryUrl:
    """Tests for discovery_url validation."""

    def test_url_built_from_server(self, loader):
        assert loader.discovery_url() == "https://cool.test/hosting/discovery"

    def test_empty_server(self):
        loader = DiscoveryLoader(WopiConfig(server_url="  "))
        with pytest.raises(CollaboraNotAvailableError, match="not configured"):
            loader.discovery_url()

    def test_bad_scheme(self):
        loader = DiscoveryLoader(WopiConfig(server_url="ftp://cool.test"))
        with pytest.raises(CollaboraNotAvailableError, match="must begin with 'http://' or 'https://'"):
            loader.discovery_url()


class TestGetDiscovery:
    """Tests for cached retrieval."""

    async def test_fetches_once_while_fresh(self, loader, discovery_transport, clock):
        first = await loader.get_discovery()
        clock.advance(3599)
        second = await loader.get_discovery()
        assert first is second
        assert discovery_transport.calls == ["https://cool.test/hosting/discovery"]
        assert loader.fetch_count == 1

    async def test_refetches_after_expiry(self, loader, discovery_transport, clock):
        await loader.get_discovery()
        clock.advance(3600)
        await loader.get_discovery()
        assert len(discovery_transport.calls) == 2

    async def test_max_age_zero_disables_cache(self, loader, loader_config, discovery_transport):
        loader_config.discovery_max_age = 0
        await loader.get_discovery()
        await loader.get_discovery()
        assert len(discovery_transport.calls) == 2
        assert len(loader.cache) == 0

    async def test_invalidate_forces_fetch(self, loader, discovery_transport):
        await loader.get_discovery()
        loader.invalidate()
        await loader.get_discovery()
        assert len(discovery_transport.calls) == 2

    async def test_server_change_bypasses_stale_entry(self, loader, loader_config, discovery_transport):
        """An entry fetched from another server address is never served."""
        await loader.get_discovery()
        loader_config.server_url = "https://other.test"
        await loader.get_discovery()
        assert discovery_transport.calls[-1] == "https://other.test/hosting/discovery"

    async def test_entry_tags(self, loader, loader_config):
        await loader.get_discovery()
        item = loader.cache.get(loader.cid)
        assert CONFIG_CACHE_TAG in item.tags
        assert f"fingerprint:{loader_config.fetch_fingerprint()}" in item.tags

    async def test_shared_cache_backend(self, loader_config, discovery_transport, clock):
        cache = MemoryCacheBackend(clock)
        a = DiscoveryLoader(loader_config, cache=cache, transport=discovery_transport, time_func=clock)
        b = DiscoveryLoader(loader_config, cache=cache, transport=discovery_transport, time_func=clock)
        await a.get_discovery()
        await b.get_discovery()
        assert len(discovery_transport.calls) == 1


class TestFetchFailures:
    """Failures surface as CollaboraNotAvailableError and are not cached."""

    async def test_http_error_status(self, loader, discovery_transport):
        discovery_transport.status_code = 500
        with pytest.raises(CollaboraNotAvailableError, match="Not able to retrieve"):
            await loader.get_discovery()
        assert len(loader.cache) == 0

    async def test_transport_error(self, loader_config):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        loader = DiscoveryLoader(loader_config, transport=httpx.MockTransport(refuse))
        with pytest.raises(CollaboraNotAvailableError, match="Not able to retrieve"):
            await loader.get_discovery()

    async def test_empty_body(self, loader, discovery_transport):
        discovery_transport.body = ""
        with pytest.raises(CollaboraNotAvailableError, match="is empty"):
            await loader.get_discovery()

    async def test_recovers_after_failure(self, loader, discovery_transport, make_discovery_xml):
        discovery_transport.body = "<oops"
        with pytest.raises(CollaboraNotAvailableError):
            await loader.get_discovery()
        discovery_transport.body = make_discovery_xml()
        discovery = await loader.get_discovery()
        assert discovery.proof_key


class TestMemoryCacheBackend:
    """Tests for the in-process cache."""

    def test_expired_entry_is_dropped(self, clock):
        cache = MemoryCacheBackend(clock)
        cache.set("k", 1, expire=clock() + 10)
        clock.advance(10)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_permanent_entry(self, clock):
        cache = MemoryCacheBackend(clock)
        cache.set("k", 1)
        clock.advance(10**9)
        assert cache.get("k").data == 1

    def test_invalidate_tags_only_matching(self, clock):
        cache = MemoryCacheBackend(clock)
        cache.set("a", 1, tags=["x"])
        cache.set("b", 2, tags=["y"])
        cache.invalidate_tags(["x"])
        assert cache.get("a") is None
        assert cache.get("b").data == 2

    def test_delete(self, clock):
        cache = MemoryCacheBackend(clock)
        cache.set("a", 1)
        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None
