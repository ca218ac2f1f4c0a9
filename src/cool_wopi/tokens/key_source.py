# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sources for the HMAC secret that signs access tokens.

ConfigKeySource reads, in priority order:
    1. WopiConfig.jwt_secret
    2. the file at WopiConfig.jwt_secret_file (Docker/K8s secrets)

A missing or empty secret raises CollaboraJwtKeyError at the moment a
token is encoded or decoded, not at startup, so the service can boot and
report the problem on use.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ..exceptions import CollaboraJwtKeyError
from ..wopi_config import WopiConfig


class KeySource(Protocol):
    """Provides the token signing secret."""

    def get_key(self) -> str: ...


class StaticKeySource:
    """Fixed secret, mostly useful in tests and embedded setups."""

    def __init__(self, secret: str | None):
        self._secret = secret

    def get_key(self) -> str:
        if not self._secret:
            raise CollaboraJwtKeyError("No secret configured for access tokens.")
        return self._secret


class ConfigKeySource:
    """Secret taken from WopiConfig, falling back to a secrets file."""

    def __init__(self, config: WopiConfig):
        self.config = config

    def get_key(self) -> str:
        if self.config.jwt_secret:
            return self.config.jwt_secret

        secret_file = self.config.jwt_secret_file
        if secret_file:
            path = Path(secret_file)
            if path.is_file():
                try:
                    secret = path.read_text(encoding="utf-8").strip()
                except OSError as e:
                    raise CollaboraJwtKeyError(
                        f"Cannot read the access token secret from '{path}': {e}"
                    ) from e
                if secret:
                    return secret
                raise CollaboraJwtKeyError(f"The access token secret file '{path}' is empty.")

        raise CollaboraJwtKeyError(
            "No secret configured for access tokens. "
            "Set WOPI_JWT_SECRET or provide a secrets file."
        )


__all__ = ["ConfigKeySource", "KeySource", "StaticKeySource"]
