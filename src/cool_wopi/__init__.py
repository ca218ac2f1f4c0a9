# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""cool-wopi: WOPI host for Collabora Online.

This package lets Collabora Online open and save documents owned by a host
application, with access tokens, proof verification and optimistic
conflict detection on save.

Main components:
    WopiConfig: Configuration dataclass
    WopiServerBase: Foundation class with components, database, endpoints
    WopiProxy: Main proxy with WOPI protocol handlers

Usage:
    from cool_wopi import WopiProxy, WopiConfig

    config = WopiConfig(
        server_url="https://collabora.example.com",
        wopi_base="https://docs.example.com",
        jwt_secret="a-long-random-secret-of-at-least-32-bytes",
    )
    proxy = WopiProxy(config=config, storage=..., users=..., oracle=...)
    app = proxy.api  # FastAPI application
"""

from .wopi_base import WopiServerBase
from .wopi_config import WopiConfig, wopi_config_from_env
from .wopi_proxy import WopiProxy

__version__ = "0.1.0"

__all__ = [
    "WopiConfig",
    "WopiProxy",
    "WopiServerBase",
    "__version__",
    "main",
    "wopi_config_from_env",
]


def main() -> None:
    """CLI entry point. Creates a WopiProxy from the environment and runs the CLI."""
    import logging

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    proxy = WopiProxy(config=wopi_config_from_env())
    proxy.cli()
