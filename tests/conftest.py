# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared pytest fixtures for cool_wopi tests."""

from __future__ import annotations

import base64
import time

import httpx
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from cool_wopi import WopiProxy
from cool_wopi.access import build_proof_subject, dump_capi_blob
from cool_wopi.host import (
    Document,
    InMemoryDocumentStorage,
    InMemoryUserDirectory,
    StaticAccessOracle,
    User,
)
from cool_wopi.util import EPOCH_OFFSET, TICKS_PER_SECOND
from cool_wopi.wopi_config import WopiConfig

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"
SERVER_URL = "https://cool.test"
WOPI_BASE = "https://host.test"
NOW = int(time.time())
ODT = "application/vnd.oasis.opendocument.text"


class Clock:
    """Settable clock usable as a ``time_func``."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Clock frozen at NOW."""
    return Clock()


@pytest.fixture(scope="session")
def rsa_keys():
    """Current and old RSA private keys, generated once per session."""
    return {
        "current": rsa.generate_private_key(public_exponent=65537, key_size=2048),
        "old": rsa.generate_private_key(public_exponent=65537, key_size=2048),
    }


@pytest.fixture
def make_discovery_xml(rsa_keys):
    """Build a discovery document; proof keys are CAPI blobs of rsa_keys."""

    def build(current: bool = True, old: bool = True, apps: dict | None = None) -> str:
        apps = apps or {
            ODT: {"edit": f"{SERVER_URL}/browser/dist/cool.html?", "view": f"{SERVER_URL}/browser/dist/cool.html?"},
            "text/plain": {"edit": f"{SERVER_URL}/browser/dist/cool.html?"},
            "application/x-iwork-pages-sffpages": {"view": f"{SERVER_URL}/browser/dist/cool.html?"},
        }
        app_xml = "".join(
            f'<app name="{name}">'
            + "".join(f'<action name="{a}" ext="" urlsrc="{u}"/>' for a, u in actions.items())
            + "</app>"
            for name, actions in apps.items()
        )
        attrs = ""
        if current:
            attrs += f' value="{dump_capi_blob(rsa_keys["current"].public_key())}"'
        if old:
            attrs += f' oldvalue="{dump_capi_blob(rsa_keys["old"].public_key())}"'
        return (
            '<?xml version="1.0" encoding="utf-8"?>'
            f'<wopi-discovery><net-zone name="external-http">{app_xml}</net-zone>'
            f"<proof-key{attrs}/></wopi-discovery>"
        )

    return build


@pytest.fixture
def discovery_transport(make_discovery_xml):
    """httpx.MockTransport serving the discovery; ``calls`` counts fetches."""

    class DiscoveryTransport(httpx.MockTransport):
        def __init__(self):
            self.calls: list[str] = []
            self.body = make_discovery_xml()
            self.status_code = 200
            super().__init__(self._handle)

        def _handle(self, request: httpx.Request) -> httpx.Response:
            self.calls.append(str(request.url))
            return httpx.Response(self.status_code, text=self.body)

    return DiscoveryTransport()


@pytest.fixture
def sign():
    """Sign a proof subject the way Collabora Online does; returns base64."""

    def _sign(private_key, access_token: str, url: str, ticks: int) -> str:
        subject = build_proof_subject(access_token, url, ticks)
        signature = private_key.sign(subject, padding.PKCS1v15(), hashes.SHA256())
        return base64.b64encode(signature).decode("ascii")

    return _sign


@pytest.fixture
def ticks_at():
    """Integer .NET ticks for a whole-second Unix timestamp."""

    def _ticks(seconds: int) -> int:
        return EPOCH_OFFSET + seconds * TICKS_PER_SECOND

    return _ticks


@pytest.fixture
def config():
    """Configuration for an in-memory host with proof checking disabled."""
    return WopiConfig(
        server_url=SERVER_URL,
        wopi_base=WOPI_BASE,
        jwt_secret=TEST_SECRET,
        jwt_secret_file=None,
        wopi_proof=False,
        db_path=":memory:",
    )


@pytest.fixture
def storage(clock):
    """Storage holding an ODT and an iWork Pages document, both owned by user 1."""
    storage = InMemoryDocumentStorage(time_func=clock)
    storage.add(
        Document(
            id="1000",
            filename="report.odt",
            content=b"ODT-BYTES",
            mimetype=ODT,
            owner_id="1",
            mtime=NOW - 3600,
        )
    )
    storage.add(
        Document(
            id="2000",
            filename="slides.pages",
            content=b"PAGES",
            mimetype="application/x-iwork-pages-sffpages",
            owner_id="1",
            mtime=NOW - 3600,
        )
    )
    return storage


@pytest.fixture
def users():
    """Owner, reader and admin users."""
    return InMemoryUserDirectory(
        [
            User(id="1", display_name="Ada Owner", email="ada@example.com", avatar_url="https://host.test/ada.png"),
            User(id="2", display_name="Bob Reader", email="bob@example.com"),
            User(id="3", display_name="Carla Admin", email="carla@example.com"),
        ]
    )


@pytest.fixture
def oracle():
    """Owner edits, everyone views, user 3 is admin."""
    return StaticAccessOracle(admins={"3"})


@pytest.fixture
def make_proxy(config, storage, users, oracle, discovery_transport, clock):
    """Factory for a WopiProxy wired to the in-memory collaborators."""

    def _make(**overrides):
        kwargs = {
            "storage": storage,
            "users": users,
            "oracle": oracle,
            "http_transport": discovery_transport,
            "time_func": clock,
        }
        kwargs.update(overrides)
        return WopiProxy(config, **kwargs)

    return _make


@pytest.fixture
async def proxy(make_proxy):
    """Started WopiProxy with an in-memory database."""
    proxy = make_proxy()
    await proxy.start()
    yield proxy
    await proxy.stop()
