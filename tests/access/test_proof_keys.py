# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for proof public key loading."""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from cool_wopi.access import dump_capi_blob, load_proof_key


@pytest.fixture
def public_key(rsa_keys):
    return rsa_keys["current"].public_key()


class TestLoadProofKey:
    """Tests for load_proof_key."""

    def test_capi_blob(self, public_key):
        loaded = load_proof_key(dump_capi_blob(public_key))
        assert loaded.public_numbers() == public_key.public_numbers()

    def test_capi_blob_header(self, public_key):
        raw = base64.b64decode(dump_capi_blob(public_key))
        assert raw[0] == 0x06
        assert raw[8:12] == b"RSA1"
        assert len(raw) == 20 + public_key.key_size // 8

    def test_pem(self, public_key):
        pem = public_key.public_bytes(
            serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode("ascii")
        assert load_proof_key(pem).public_numbers() == public_key.public_numbers()

    def test_base64_der(self, public_key):
        der = public_key.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        value = base64.b64encode(der).decode("ascii")
        assert load_proof_key(value).public_numbers() == public_key.public_numbers()

    @pytest.mark.parametrize("value", ["", "   ", "not base64 !!", "AAAA"])
    def test_unusable_values(self, value):
        with pytest.raises(ValueError):
            load_proof_key(value)

    def test_truncated_blob(self, public_key):
        raw = base64.b64decode(dump_capi_blob(public_key))
        with pytest.raises(ValueError, match="truncated"):
            load_proof_key(base64.b64encode(raw[:100]).decode("ascii"))

    def test_wrong_magic(self, public_key):
        raw = bytearray(base64.b64decode(dump_capi_blob(public_key)))
        raw[8:12] = b"DSS1"
        with pytest.raises(ValueError, match="RSA1"):
            load_proof_key(base64.b64encode(bytes(raw)).decode("ascii"))

    def test_non_rsa_key(self):
        ec_key = ec.generate_private_key(ec.SECP256R1()).public_key()
        pem = ec_key.public_bytes(
            serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode("ascii")
        with pytest.raises(ValueError, match="not an RSA key"):
            load_proof_key(pem)
