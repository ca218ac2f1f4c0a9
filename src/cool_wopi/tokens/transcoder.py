# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Signed, expiring access tokens (JWT, HS256).

encode() always injects the ``exp`` claim. decode() verifies signature and
expiry with PyJWT's clock and returns None on any verification failure:
callers treat that as "unauthenticated", never as a system error. Only a
missing signing secret propagates, as CollaboraJwtKeyError.

Example:
    ::

        transcoder = JwtTranscoder(StaticKeySource("x" * 32))
        token = transcoder.encode({"fid": "1", "uid": "2", "wri": True}, time.time() + 3600)
        claims = transcoder.decode(token)
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from .key_source import KeySource

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class JwtTranscoder:
    """Encodes and decodes access tokens with a pluggable key source."""

    def __init__(self, key_source: KeySource):
        self.key_source = key_source

    def encode(self, payload: dict[str, Any], expire_timestamp: float) -> str:
        """Sign a payload.

        Args:
            payload: Claims to sign. An ``exp`` entry is overwritten.
            expire_timestamp: Unix timestamp after which the token is invalid.

        Returns:
            Compact serialized token.

        Raises:
            CollaboraJwtKeyError: No signing secret available.
        """
        key = self.key_source.get_key()
        claims = {**payload, "exp": expire_timestamp}
        return jwt.encode(claims, key, algorithm=ALGORITHM)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Verify a token and return its claims.

        Returns:
            The claims, or None when the signature is invalid, the token is
            expired or malformed, or it carries no ``exp`` claim.

        Raises:
            CollaboraJwtKeyError: No signing secret available.
        """
        key = self.key_source.get_key()
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Access token rejected: {e}")
            return None
        if not isinstance(claims, dict):
            return None
        return claims


__all__ = ["ALGORITHM", "JwtTranscoder"]
