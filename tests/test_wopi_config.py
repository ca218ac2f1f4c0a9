# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for WopiConfig and environment loading."""

import pytest

from cool_wopi.wopi_config import DEFAULT_ACCESS_TOKEN_TTL, WopiConfig, wopi_config_from_env


class TestWopiConfigDefaults:
    """Tests for default values."""

    def test_defaults(self):
        config = WopiConfig()
        assert config.server_url == ""
        assert config.wopi_proof is True
        assert config.proof_ttl == 1200
        assert config.discovery_max_age == 43200
        assert config.access_token_ttl == 86400
        assert config.disable_cert_check is False
        assert config.api_token is None

    def test_effective_token_ttl_zero_falls_back(self):
        """An access token TTL of 0 means one day."""
        assert WopiConfig(access_token_ttl=0).effective_token_ttl == DEFAULT_ACCESS_TOKEN_TTL

    def test_effective_token_ttl_explicit(self):
        assert WopiConfig(access_token_ttl=600).effective_token_ttl == 600


class TestFetchFingerprint:
    """Tests for the discovery fetch fingerprint."""

    def test_trailing_slash_ignored(self):
        a = WopiConfig(server_url="https://cool.test/")
        b = WopiConfig(server_url="https://cool.test")
        assert a.fetch_fingerprint() == b.fetch_fingerprint()

    def test_server_change_changes_fingerprint(self):
        a = WopiConfig(server_url="https://one.test")
        b = WopiConfig(server_url="https://two.test")
        assert a.fetch_fingerprint() != b.fetch_fingerprint()

    def test_cert_check_changes_fingerprint(self):
        a = WopiConfig(server_url="https://cool.test")
        b = WopiConfig(server_url="https://cool.test", disable_cert_check=True)
        assert a.fetch_fingerprint() != b.fetch_fingerprint()


class TestWopiConfigFromEnv:
    """Tests for wopi_config_from_env."""

    def test_empty_environment_keeps_defaults(self):
        assert wopi_config_from_env({}) == WopiConfig()

    def test_values_are_typed(self):
        config = wopi_config_from_env(
            {
                "WOPI_SERVER_URL": "https://cool.test",
                "WOPI_PROOF": "false",
                "WOPI_DISABLE_CERT_CHECK": "yes",
                "WOPI_PROOF_TTL": "60",
                "WOPI_HTTP_TIMEOUT": "2.5",
                "WOPI_JWT_SECRET": "s" * 32,
                "WOPI_API_TOKEN": "admin",
            }
        )
        assert config.server_url == "https://cool.test"
        assert config.wopi_proof is False
        assert config.disable_cert_check is True
        assert config.proof_ttl == 60
        assert config.http_timeout == 2.5
        assert config.jwt_secret == "s" * 32
        assert config.api_token == "admin"

    @pytest.mark.parametrize("raw", ["1", "true", "TRUE", "on", "yes"])
    def test_true_values(self, raw):
        assert wopi_config_from_env({"WOPI_DISABLE_CERT_CHECK": raw}).disable_cert_check is True

    def test_invalid_int_raises(self):
        with pytest.raises(ValueError):
            wopi_config_from_env({"WOPI_PORT": "eighty"})

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("WOPI_INSTANCE_NAME", "docs")
        assert wopi_config_from_env().instance_name == "docs"
