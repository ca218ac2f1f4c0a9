# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Editor launch endpoint.

The host UI calls ``launch`` to obtain what the embedding page needs: the
Collabora Online URL (with WOPISrc) and the access token to POST to it.

Example:
    CLI command auto-generated::

        cool-wopi editor launch --document-id 42 --user-id 7 --edit
"""

from __future__ import annotations

from ...interface.endpoint_base import POST, BaseEndpoint


class EditorEndpoint(BaseEndpoint):
    """Issues editor URLs and access tokens."""

    name = "editor"

    @POST
    async def launch(self, document_id: str, user_id: str, edit: bool = False) -> dict:
        """Build the editor URL and access token for a document.

        Args:
            document_id: Host document identifier.
            user_id: Host user opening the document.
            edit: Request edit mode. Read-only formats fall back to view.

        Returns:
            Dict with url, access_token, access_token_ttl (ms) and can_write.
        """
        return await self.proxy.launch_editor(document_id, user_id, edit=edit)


__all__ = ["EditorEndpoint"]
