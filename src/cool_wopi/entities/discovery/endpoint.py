# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Discovery inspection endpoint.

Example:
    CLI commands auto-generated::

        cool-wopi discovery client-url --mimetype text/plain
        cool-wopi discovery proof-keys
        cool-wopi discovery refresh
"""

from __future__ import annotations

from ...interface.endpoint_base import POST, BaseEndpoint


class DiscoveryEndpoint(BaseEndpoint):
    """Read-only view of the cached discovery, plus cache invalidation."""

    name = "discovery"

    async def client_url(self, mimetype: str, action: str = "edit") -> dict:
        """Look up the editor URL template for a mime type."""
        discovery = await self.proxy.discovery.get_discovery()
        return {"mimetype": mimetype, "action": action, "url": discovery.get_client_url(mimetype, action)}

    async def proof_keys(self) -> dict:
        """Report which proof keys the discovery publishes."""
        discovery = await self.proxy.discovery.get_discovery()
        return {
            "current": discovery.proof_key is not None,
            "old": discovery.proof_key_old is not None,
        }

    @POST
    async def refresh(self) -> dict:
        """Drop the cached discovery and fetch it again."""
        self.proxy.discovery.invalidate()
        discovery = await self.proxy.discovery.get_discovery()
        return {"ok": True, "mimetypes": len(discovery.mimetypes)}


__all__ = ["DiscoveryEndpoint"]
