# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclass for the cool-wopi host.

WopiConfig is the single entry point for all configuration. One instance
is built at startup and injected into every component (discovery loader,
token transcoder, proof checker, proxy); nothing reads settings from
module-level globals.

Usage:
    config = WopiConfig(
        server_url="https://collabora.example.com",
        wopi_base="https://docs.example.com",
        jwt_secret="a-long-random-secret-of-at-least-32-bytes",
    )
    proxy = WopiProxy(config=config)

    # Or from WOPI_* environment variables
    proxy = WopiProxy(config=wopi_config_from_env())
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

DEFAULT_ACCESS_TOKEN_TTL = 86400
"""Access token lifetime used when the configured value is 0."""

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class WopiConfig:
    """Main configuration container for the WOPI host.

    Collabora Settings:
        server_url: Collabora Online base URL (discovery lives below it)
        disable_cert_check: Skip TLS verification of the discovery fetch
        discovery_max_age: Discovery cache TTL in seconds, 0 disables caching
        http_timeout: Timeout in seconds of the outbound discovery fetch

    WOPI Settings:
        wopi_base: Public base URL of this host, used to build WOPISrc
        wopi_proof: Verify X-WOPI-Proof signatures and timestamps
        proof_ttl: Maximum accepted age of X-WOPI-Timestamp in seconds
        access_token_ttl: Access token lifetime in seconds
        jwt_secret: HMAC secret for access tokens
        jwt_secret_file: File holding the HMAC secret (Docker/K8s secrets)

    Service Settings:
        db_path: SQLite database path for the settings store
        instance_name: Service identifier for display
        port: Default API server port
        api_token: Optional X-API-Token protecting the admin endpoints
    """

    server_url: str = ""
    """Collabora Online server address, e.g. https://collabora.example.com."""

    wopi_base: str = "http://localhost:8000"
    """Base URL under which Collabora Online reaches this WOPI host."""

    disable_cert_check: bool = False
    """Disable TLS certificate verification when fetching discovery."""

    wopi_proof: bool = True
    """Verify proof signatures and timestamps on inbound WOPI requests."""

    proof_ttl: int = 1200
    """Maximum age of X-WOPI-Timestamp in seconds."""

    discovery_max_age: int = 43200
    """Discovery cache lifetime in seconds. 0 disables caching."""

    access_token_ttl: int = DEFAULT_ACCESS_TOKEN_TTL
    """Access token lifetime in seconds. 0 means the default of one day."""

    jwt_secret: str | None = None
    """HMAC-SHA256 secret used to sign access tokens."""

    jwt_secret_file: str | None = "/run/secrets/wopi_jwt_secret"
    """Fallback file for the access token secret."""

    http_timeout: float = 10.0
    """Timeout in seconds of outbound HTTP calls."""

    db_path: str = "/data/cool_wopi.db"
    """SQLite database path for the settings store."""

    instance_name: str = "cool-wopi"
    """Instance name for display and identification."""

    port: int = 8000
    """Default port for API server."""

    api_token: str | None = None
    """API authentication token for admin endpoints. If None, no auth required."""

    @property
    def effective_token_ttl(self) -> int:
        """Access token lifetime with the 0 fallback applied."""
        return self.access_token_ttl or DEFAULT_ACCESS_TOKEN_TTL

    def fetch_fingerprint(self) -> str:
        """Identify the settings that affect the discovery fetch."""
        return f"{self.server_url.strip().rstrip('/')}|{int(self.disable_cert_check)}"


def _parse_env_value(raw: str, annotation: str) -> object:
    """Convert an environment string to the field's declared type."""
    if annotation == "bool":
        return raw.strip().lower() in _TRUE_VALUES
    if annotation == "int":
        return int(raw)
    if annotation == "float":
        return float(raw)
    return raw


_ENV_NAMES = {
    "server_url": "WOPI_SERVER_URL",
    "wopi_base": "WOPI_BASE",
    "disable_cert_check": "WOPI_DISABLE_CERT_CHECK",
    "wopi_proof": "WOPI_PROOF",
    "proof_ttl": "WOPI_PROOF_TTL",
    "discovery_max_age": "WOPI_DISCOVERY_MAX_AGE",
    "access_token_ttl": "WOPI_ACCESS_TOKEN_TTL",
    "jwt_secret": "WOPI_JWT_SECRET",
    "jwt_secret_file": "WOPI_JWT_SECRET_FILE",
    "http_timeout": "WOPI_HTTP_TIMEOUT",
    "db_path": "WOPI_DB_PATH",
    "instance_name": "WOPI_INSTANCE_NAME",
    "port": "WOPI_PORT",
    "api_token": "WOPI_API_TOKEN",
}


def wopi_config_from_env(environ: dict[str, str] | None = None) -> WopiConfig:
    """Build a WopiConfig from WOPI_* environment variables.

    Unset variables keep the dataclass defaults.

    Args:
        environ: Mapping to read instead of os.environ (for tests).

    Returns:
        Populated WopiConfig.
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    for f in fields(WopiConfig):
        raw = env.get(_ENV_NAMES[f.name])
        if raw is None:
            continue
        annotation = str(f.type).replace(" | None", "")
        values[f.name] = _parse_env_value(raw, annotation)
    return WopiConfig(**values)  # type: ignore[arg-type]


__all__ = ["DEFAULT_ACCESS_TOKEN_TTL", "WopiConfig", "wopi_config_from_env"]
