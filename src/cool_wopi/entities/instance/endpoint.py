# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Instance REST API endpoint for service-level operations.

Example:
    CLI commands auto-generated::

        cool-wopi instance health
        cool-wopi instance status
"""

from __future__ import annotations

from ...interface.endpoint_base import BaseEndpoint


class InstanceEndpoint(BaseEndpoint):
    """Service health and status."""

    name = "instance"

    async def health(self) -> dict:
        """Health check for container orchestration.

        Does not require authentication and does not touch the database
        or Collabora Online.
        """
        return {"status": "ok"}

    async def status(self) -> dict:
        """Authenticated service status."""
        config = self.proxy.config
        return {
            "ok": True,
            "active": self.proxy.active,
            "name": config.instance_name,
            "server_url": config.server_url,
            "wopi_proof": config.wopi_proof,
        }


__all__ = ["InstanceEndpoint"]
