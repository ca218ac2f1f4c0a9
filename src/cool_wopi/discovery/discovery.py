# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Parsed Collabora Online discovery document.

The discovery XML published at ``{server}/hosting/discovery`` looks like::

    <wopi-discovery>
      <net-zone name="external-http">
        <app name="application/vnd.oasis.opendocument.text">
          <action name="edit" ext="" urlsrc="https://cool/browser/dist/cool.html?"/>
        </app>
      </net-zone>
      <proof-key value="BgIAAACkAABSU0Ex..." oldvalue="BgIAAACkAABSU0Ex..."/>
    </wopi-discovery>

parse_discovery() turns it into an immutable Discovery value. The XML is
parsed with defusedxml so entity expansion tricks in a hostile document
are rejected instead of evaluated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, fromstring

from ..exceptions import CollaboraNotAvailableError


@dataclass(frozen=True)
class Discovery:
    """Immutable view of a discovery document.

    Attributes:
        actions: Mapping of app name (usually a mime type) to a mapping of
            action name to client URL template.
        proof_key: Current proof public key (base64 CAPI blob), if published.
        proof_key_old: Previous proof public key, if published.
    """

    actions: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    proof_key: str | None = None
    proof_key_old: str | None = None

    def get_client_url(self, mimetype: str, action: str | None = None) -> str | None:
        """Find the editor URL template for a mime type.

        Args:
            mimetype: Document mime type, e.g. "text/plain".
            action: Action name such as "edit" or "view". When None, the
                first action published for the mime type is used.

        Returns:
            The ``urlsrc`` template, or None when the editor does not
            handle this combination.
        """
        app = self.actions.get(mimetype)
        if not app:
            return None
        if action is None:
            return next(iter(app.values()))
        return app.get(action)

    @property
    def mimetypes(self) -> list[str]:
        """All app names listed by the discovery document."""
        return list(self.actions)


def parse_discovery(xml: str | bytes) -> Discovery:
    """Parse a discovery document.

    Args:
        xml: Raw response body.

    Returns:
        Discovery value.

    Raises:
        CollaboraNotAvailableError: Body is empty or not a discovery document.
    """
    if not xml or not xml.strip():
        raise CollaboraNotAvailableError("The discovery.xml file is empty.")
    try:
        root = fromstring(xml)
    except (ParseError, DefusedXmlException) as e:
        raise CollaboraNotAvailableError(
            f"Error in the retrieved discovery.xml file: {e}"
        ) from e
    if root.tag != "wopi-discovery":
        raise CollaboraNotAvailableError(
            f"Error in the retrieved discovery.xml file: unexpected root element '{root.tag}'."
        )

    actions: dict[str, dict[str, str]] = {}
    for app in root.iterfind("./net-zone/app"):
        app_name = app.get("name")
        if not app_name:
            continue
        app_actions = actions.setdefault(app_name, {})
        for action in app.iterfind("./action"):
            action_name = action.get("name")
            urlsrc = action.get("urlsrc")
            if action_name and urlsrc and action_name not in app_actions:
                app_actions[action_name] = urlsrc

    proof_key = root.find("./proof-key")
    current = proof_key.get("value") if proof_key is not None else None
    old = proof_key.get("oldvalue") if proof_key is not None else None

    return Discovery(
        actions=MappingProxyType(
            {name: MappingProxyType(acts) for name, acts in actions.items() if acts}
        ),
        proof_key=current or None,
        proof_key_old=old or None,
    )


__all__ = ["Discovery", "parse_discovery"]
