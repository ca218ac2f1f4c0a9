# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Loading of WOPI proof public keys.

Collabora Online publishes its proof keys in the discovery document as a
base64 Microsoft CryptoAPI PUBLICKEYBLOB. Layout (little-endian)::

    offset  size  field
    0       1     bType      0x06 (PUBLICKEYBLOB)
    1       1     bVersion   0x02
    2       2     reserved
    4       4     aiKeyAlg   0x0000A400 (CALG_RSA_KEYX)
    8       4     magic      "RSA1"
    12      4     bitlen
    16      4     pubexp
    20      n     modulus    bitlen / 8 bytes

PEM and base64 DER SubjectPublicKeyInfo encodings are accepted as well.
"""

from __future__ import annotations

import base64
import binascii
import struct

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey, RSAPublicNumbers

_BLOB_HEADER = struct.Struct("<BBHI4sII")
_PUBLICKEYBLOB = 0x06
_RSA1_MAGIC = b"RSA1"


def load_proof_key(value: str) -> RSAPublicKey:
    """Parse a proof key into an RSA public key.

    Args:
        value: Base64 CAPI blob, PEM text, or base64 DER.

    Returns:
        The RSA public key.

    Raises:
        ValueError: The value is not a usable RSA public key.
    """
    value = value.strip()
    if not value:
        raise ValueError("empty proof key")

    if value.startswith("-----BEGIN"):
        key = serialization.load_pem_public_key(value.encode("ascii"))
    else:
        try:
            raw = base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"proof key is not valid base64: {e}") from e
        if raw[:1] == bytes([_PUBLICKEYBLOB]):
            key = _load_capi_blob(raw)
        else:
            key = serialization.load_der_public_key(raw)

    if not isinstance(key, RSAPublicKey):
        raise ValueError(f"proof key is not an RSA key: {type(key).__name__}")
    return key


def _load_capi_blob(raw: bytes) -> RSAPublicKey:
    if len(raw) < _BLOB_HEADER.size:
        raise ValueError("PUBLICKEYBLOB too short")
    b_type, _version, _reserved, _alg, magic, bitlen, pubexp = _BLOB_HEADER.unpack_from(raw)
    if b_type != _PUBLICKEYBLOB or magic != _RSA1_MAGIC:
        raise ValueError("not an RSA1 PUBLICKEYBLOB")
    modulus_len = bitlen // 8
    modulus = raw[_BLOB_HEADER.size : _BLOB_HEADER.size + modulus_len]
    if len(modulus) != modulus_len or modulus_len == 0:
        raise ValueError("PUBLICKEYBLOB modulus truncated")
    n = int.from_bytes(modulus, "little")
    return RSAPublicNumbers(pubexp, n).public_key()


def dump_capi_blob(key: RSAPublicKey) -> str:
    """Serialize an RSA public key as a base64 CAPI PUBLICKEYBLOB."""
    numbers = key.public_numbers()
    bitlen = key.key_size
    header = _BLOB_HEADER.pack(_PUBLICKEYBLOB, 0x02, 0, 0x0000A400, _RSA1_MAGIC, bitlen, numbers.e)
    modulus = numbers.n.to_bytes(bitlen // 8, "little")
    return base64.b64encode(header + modulus).decode("ascii")


__all__ = ["dump_capi_blob", "load_proof_key"]
