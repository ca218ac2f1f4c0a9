# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for the WOPI host: components, database, endpoints, interfaces.

WopiServerBase wires together everything the protocol handlers need:

1. Configuration: WopiConfig instance at self.config
2. Discovery: DiscoveryLoader at self.discovery (cached, tag-invalidated)
3. Tokens: JwtTranscoder at self.transcoder
4. Proof: WopiProofChecker at self.proof_checker
5. Database: SqlDb at self.db with tables from ``entities/*/table.py``
6. Settings: SettingsStore at self.settings
7. Endpoints: Registry at self.endpoints from ``entities/*/endpoint.py``
8. Interfaces: Lazy ``api`` (FastAPI) and ``cli`` (click) properties

Class Hierarchy:
    WopiServerBase (this class)
        └── WopiProxy (wopi_proxy.py): adds WOPI protocol handlers

Usage (testing without HTTP):
    proxy = WopiProxy(WopiConfig(db_path=":memory:", jwt_secret="..."))
    await proxy.init()
    stamp = await proxy.settings.write("/settings/userconfig/a/b.dic", b"x")
"""

from __future__ import annotations

import dataclasses
import importlib
import inspect
import logging
import pkgutil
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from .access import WopiProofChecker
from .discovery import CacheBackend, DiscoveryLoader
from .entities.settings import SettingsStore
from .interface import BaseEndpoint
from .sql import SqlDb, Table
from .tokens import ConfigKeySource, JwtTranscoder, KeySource
from .wopi_config import WopiConfig

if TYPE_CHECKING:
    import click
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_ENTITIES_PACKAGE = "cool_wopi.entities"


class WopiServerBase:
    """Foundation layer: config, components, database, endpoints.

    Attributes:
        config: WopiConfig instance with all configuration
        discovery: DiscoveryLoader for the Collabora Online discovery
        transcoder: JwtTranscoder for access tokens
        proof_checker: WopiProofChecker for inbound requests
        db: SqlDb with autodiscovered Table classes
        settings: SettingsStore over the settings tables
        endpoints: Admin endpoint instances keyed by name

    Properties:
        api: FastAPI application, built on first access
        cli: click group, built on first access
    """

    def __init__(
        self,
        config: WopiConfig | None = None,
        *,
        key_source: KeySource | None = None,
        discovery_cache: CacheBackend | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        time_func: Callable[[], float] = time.time,
    ):
        """Initialize components from configuration.

        Args:
            config: WopiConfig instance. If None, creates default.
            key_source: Token secret source. Defaults to ConfigKeySource.
            discovery_cache: Cache backend for discovery. Defaults to memory.
            http_transport: httpx transport for the discovery fetch (tests).
            time_func: Clock returning Unix seconds.
        """
        self.config = config or WopiConfig()
        self._time = time_func

        self.discovery = DiscoveryLoader(
            self.config,
            cache=discovery_cache,
            transport=http_transport,
            time_func=time_func,
        )
        self.transcoder = JwtTranscoder(key_source or ConfigKeySource(self.config))
        self.proof_checker = WopiProofChecker(self.config, self.discovery, time_func=time_func)

        self.db = SqlDb(self.config.db_path or ":memory:")
        self._discover_tables()
        self.settings = SettingsStore(self.db)

        self.endpoints: dict[str, BaseEndpoint] = {}
        for endpoint_class in BaseEndpoint.discover():
            self.endpoints[endpoint_class.name] = endpoint_class(self)  # type: ignore[arg-type]

    def _discover_tables(self) -> None:
        """Register every Table subclass defined in ``entities/*/table.py``."""
        package = importlib.import_module(_ENTITIES_PACKAGE)
        for _, name, is_pkg in pkgutil.iter_modules(package.__path__):
            if not is_pkg:
                continue
            module_name = f"{_ENTITIES_PACKAGE}.{name}.table"
            try:
                module = importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                if e.name != module_name:
                    raise
                continue
            for _attr, obj in inspect.getmembers(module, inspect.isclass):
                if issubclass(obj, Table) and obj.__module__ == module_name and obj.name:
                    self.db.add_table(obj)

    def endpoint(self, name: str) -> BaseEndpoint:
        """Registered endpoint by name."""
        if name not in self.endpoints:
            raise ValueError(f"Endpoint '{name}' not found")
        return self.endpoints[name]

    def update_config(self, **changes: Any) -> WopiConfig:
        """Apply configuration changes and invalidate dependent caches.

        Components keep a reference to the same WopiConfig object, so the
        change is visible everywhere at once.

        Raises:
            TypeError: Unknown configuration field.
        """
        known = {f.name for f in dataclasses.fields(WopiConfig)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            setattr(self.config, key, value)
        self.discovery.invalidate()
        logger.info(f"Configuration updated: {', '.join(sorted(changes))}")
        return self.config

    async def init(self) -> None:
        """Open the settings database and create missing tables."""
        await self.db.connect()
        await self.db.check_structure()
        logger.info(f"Settings database ready at {self.config.db_path}")

    async def close(self) -> None:
        """Close the settings database."""
        await self.db.close()

    # -------------------------------------------------------------------------
    # Interface factories (lazy properties)
    # -------------------------------------------------------------------------

    @property
    def api(self) -> FastAPI:
        """FastAPI app with WOPI routes, admin endpoints and lifespan.

        Usage:
            uvicorn cool_wopi.server:app
        """
        if getattr(self, "_api", None) is None:
            from .interface import create_app

            self._api = create_app(self, api_token=self.config.api_token)  # type: ignore[arg-type]
        return self._api

    @property
    def cli(self) -> click.Group:
        """Click CLI group with endpoint commands and ``serve``.

        Usage:
            cool-wopi --help
        """
        if getattr(self, "_cli", None) is None:
            self._cli = self._create_cli()
        return self._cli

    def _create_cli(self) -> click.Group:
        """Build Click CLI: endpoint commands + serve."""
        import click

        from .interface import register_cli_endpoint

        @click.group()
        @click.version_option(package_name="cool-wopi")
        def cli() -> None:
            """cool-wopi: WOPI host for Collabora Online."""

        for endpoint in self.endpoints.values():
            register_cli_endpoint(cli, endpoint)

        @cli.command("serve")
        @click.option("--host", default="0.0.0.0", help="Bind host")
        @click.option("--port", "-p", default=self.config.port, help="Bind port")
        @click.option("--reload", is_flag=True, help="Enable auto-reload")
        def serve_cmd(host: str, port: int, reload: bool) -> None:
            """Start the API server."""
            import uvicorn

            uvicorn.run("cool_wopi.server:app", host=host, port=port, reload=reload)

        return cli


__all__ = ["WopiServerBase"]
