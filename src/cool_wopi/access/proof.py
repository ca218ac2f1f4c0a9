# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""WOPI proof and timestamp verification.

Every request Collabora Online sends to the host carries:
    X-WOPI-Timestamp: .NET ticks when the request was signed
    X-WOPI-Proof: signature made with the current private key
    X-WOPI-ProofOld: signature made with the previous private key

The signed subject is::

    len(token):u32be | token | len(URL):u32be | URL.upper() | 8:u32be | ticks:u64be

WopiProofChecker.check() runs, short-circuiting:
    1. timestamp presence and age against ``proof_ttl``
    2. proof key retrieval from discovery
    3. signature header decoding
    4. verification over ALLOWED_PROOF_PAIRS

With ``wopi_proof`` disabled the whole check, timestamp included, is skipped.
"""

from __future__ import annotations

import base64
import binascii
import enum
import hashlib
import hmac
import logging
import re
import struct
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from ..exceptions import CollaboraNotAvailableError
from ..util.dotnet_time import ticks_to_seconds
from .keys import load_proof_key

if TYPE_CHECKING:
    from starlette.requests import Request

    from ..discovery import DiscoveryLoader
    from ..wopi_config import WopiConfig

logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(r"[1-9]\d+")
_MAX_TICKS = 2**63 - 1

# SHA-256 DigestInfo prefixes, with and without the NULL algorithm parameter.
_SHA256_DIGEST_INFO_PREFIXES = (
    bytes.fromhex("3031300d060960864801650304020105000420"),
    bytes.fromhex("302f300b06096086480165030402010420"),
)


class ProofRole(enum.Enum):
    """Whether a key or signature is the current or the previous one."""

    CURRENT = "current"
    OLD = "old"


ALLOWED_PROOF_PAIRS: tuple[tuple[ProofRole, ProofRole], ...] = (
    (ProofRole.CURRENT, ProofRole.CURRENT),
    (ProofRole.CURRENT, ProofRole.OLD),
    (ProofRole.OLD, ProofRole.CURRENT),
)
"""(key role, signature role) pairs tried in order. An old signature is
never checked against the old key."""


@dataclass(frozen=True)
class AccessResult:
    """Outcome of an access check."""

    allowed: bool
    reason: str = ""

    @classmethod
    def allow(cls) -> AccessResult:
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> AccessResult:
        return cls(False, reason)


@dataclass(frozen=True)
class ProofRequest:
    """The parts of an inbound request the proof check needs.

    Attributes:
        access_token: ``access_token`` query parameter, as sent.
        url: Full request URL (scheme, host, path and query).
        timestamp: X-WOPI-Timestamp header value.
        proof: X-WOPI-Proof header value.
        proof_old: X-WOPI-ProofOld header value.
    """

    access_token: str
    url: str
    timestamp: str | None = None
    proof: str | None = None
    proof_old: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> ProofRequest:
        """Extract proof inputs from a Starlette/FastAPI request."""
        return cls(
            access_token=request.query_params.get("access_token", ""),
            url=str(request.url),
            timestamp=request.headers.get("X-WOPI-Timestamp"),
            proof=request.headers.get("X-WOPI-Proof"),
            proof_old=request.headers.get("X-WOPI-ProofOld"),
        )


def build_proof_subject(access_token: str, url: str, ticks: int) -> bytes:
    """Build the byte string Collabora Online signs."""
    token_bytes = access_token.encode("utf-8")
    url_bytes = url.upper().encode("utf-8")
    return b"".join(
        (
            struct.pack(">I", len(token_bytes)),
            token_bytes,
            struct.pack(">I", len(url_bytes)),
            url_bytes,
            struct.pack(">I", 8),
            struct.pack(">Q", ticks),
        )
    )


def verify_signature(key: RSAPublicKey, signature: bytes, subject: bytes) -> bool:
    """Relaxed RSA-SHA256 PKCS#1 v1.5 verification returning a boolean.

    The strict check is tried first. Failing that, the DigestInfo is
    recovered from the signature and accepted when it carries the SHA-256
    digest of subject, with or without the NULL algorithm parameter.
    """
    try:
        key.verify(signature, subject, padding.PKCS1v15(), hashes.SHA256())
        return True
    except (InvalidSignature, ValueError):
        pass
    try:
        recovered = key.recover_data_from_signature(signature, padding.PKCS1v15(), None)
    except (InvalidSignature, ValueError):
        return False
    digest = hashlib.sha256(subject).digest()
    return any(
        hmac.compare_digest(recovered, prefix + digest)
        for prefix in _SHA256_DIGEST_INFO_PREFIXES
    )


def _format_seconds(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.3f}".rstrip("0")


class WopiProofChecker:
    """Validates X-WOPI-Proof signatures and timestamps.

    Attributes:
        config: WopiConfig providing ``wopi_proof`` and ``proof_ttl``.
        discovery_loader: Source of the proof public keys.
    """

    def __init__(
        self,
        config: WopiConfig,
        discovery_loader: DiscoveryLoader,
        time_func: Callable[[], float] = time.time,
    ):
        self.config = config
        self.discovery_loader = discovery_loader
        self._time = time_func

    async def check(self, request: ProofRequest) -> AccessResult:
        """Run the full proof check on a request."""
        if not self.config.wopi_proof:
            return AccessResult.allow()

        timeout_result = self.check_timeout(request.timestamp)
        if not timeout_result.allowed:
            return timeout_result
        ticks = int(request.timestamp)  # type: ignore[arg-type]

        try:
            discovery = await self.discovery_loader.get_discovery()
        except CollaboraNotAvailableError as e:
            logger.error(f"Failure in WOPI proof check: {e}")
            return AccessResult.deny("Cannot get discovery for proof keys.")

        keys = self._load_keys(discovery.proof_key, discovery.proof_key_old)
        if not keys:
            return AccessResult.deny("Missing or incomplete WOPI proof keys.")

        signatures = self._decode_signatures(request.proof, request.proof_old)
        if not signatures:
            return AccessResult.deny("Missing or incomplete WOPI proof headers.")

        subject = build_proof_subject(request.access_token, request.url, ticks)
        if self.verify(keys, signatures, subject):
            return AccessResult.allow()
        return AccessResult.deny("WOPI proof mismatch.")

    def check_timeout(self, timestamp: str | None) -> AccessResult:
        """Reject missing, malformed or stale X-WOPI-Timestamp values."""
        if (
            timestamp is None
            or len(timestamp) > len(str(_MAX_TICKS))
            or not _TIMESTAMP_RE.fullmatch(timestamp)
            or int(timestamp) > _MAX_TICKS
        ):
            return AccessResult.deny("The X-WOPI-Timestamp header is missing, empty or invalid.")
        age = self._time() - ticks_to_seconds(int(timestamp))
        ttl = self.config.proof_ttl
        if age > ttl:
            return AccessResult.deny(
                f"The X-WOPI-Timestamp header is {_format_seconds(age)} seconds old, "
                f"which is more than the {ttl} seconds TTL."
            )
        return AccessResult.allow()

    @staticmethod
    def verify(
        keys: dict[ProofRole, RSAPublicKey],
        signatures: dict[ProofRole, bytes],
        subject: bytes,
    ) -> bool:
        """Try each allowed (key, signature) pair until one verifies."""
        for key_role, signature_role in ALLOWED_PROOF_PAIRS:
            key = keys.get(key_role)
            signature = signatures.get(signature_role)
            if key is None or signature is None:
                continue
            if verify_signature(key, signature, subject):
                return True
        return False

    def _load_keys(
        self, current: str | None, old: str | None
    ) -> dict[ProofRole, RSAPublicKey]:
        keys: dict[ProofRole, RSAPublicKey] = {}
        if old and old == current:
            old = None
        for role, value in ((ProofRole.CURRENT, current), (ProofRole.OLD, old)):
            if not value:
                continue
            try:
                keys[role] = load_proof_key(value)
            except ValueError as e:
                logger.warning(f"Ignoring unusable {role.value} WOPI proof key: {e}")
        return keys

    def _decode_signatures(
        self, proof: str | None, proof_old: str | None
    ) -> dict[ProofRole, bytes]:
        signatures: dict[ProofRole, bytes] = {}
        for role, value in ((ProofRole.CURRENT, proof), (ProofRole.OLD, proof_old)):
            if not value:
                continue
            try:
                decoded = base64.b64decode(value, validate=True)
            except binascii.Error:
                logger.debug(f"Ignoring {role.value} proof header with invalid base64")
                continue
            if decoded:
                signatures[role] = decoded
        if signatures.get(ProofRole.OLD) == signatures.get(ProofRole.CURRENT):
            signatures.pop(ProofRole.OLD, None)
        return signatures


__all__ = [
    "ALLOWED_PROOF_PAIRS",
    "AccessResult",
    "ProofRequest",
    "ProofRole",
    "WopiProofChecker",
    "build_proof_subject",
    "verify_signature",
]
