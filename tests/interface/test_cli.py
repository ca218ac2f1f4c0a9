# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the click CLI generated from endpoints."""

import json

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli(make_proxy):
    return make_proxy().cli


class TestCli:
    """Tests for generated commands."""

    def test_groups_listed(self, runner, cli):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("editor", "discovery", "instance", "serve"):
            assert name in result.output

    def test_version(self, runner, cli):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_instance_status(self, runner, cli):
        result = runner.invoke(cli, ["instance", "status"])
        assert result.exit_code == 0, result.output
        status = json.loads(result.output)
        assert status["active"] is True
        assert status["server_url"] == "https://cool.test"

    def test_client_url_options(self, runner, cli):
        result = runner.invoke(
            cli, ["discovery", "client-url", "--mimetype", "application/vnd.oasis.opendocument.text", "--action", "view"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["url"] == "https://cool.test/browser/dist/cool.html?"

    def test_launch_edit_flag(self, runner, cli):
        result = runner.invoke(cli, ["editor", "launch", "--document-id", "1000", "--user-id", "1", "--edit"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["can_write"] is True

    def test_required_option(self, runner, cli):
        result = runner.invoke(cli, ["editor", "launch", "--user-id", "1"])
        assert result.exit_code == 2
        assert "--document-id" in result.output

    def test_error_becomes_click_exception(self, runner, cli):
        result = runner.invoke(cli, ["editor", "launch", "--document-id", "9999", "--user-id", "1"])
        assert result.exit_code == 1
        assert "Document '9999' not found." in result.output

    def test_collabora_down(self, runner, cli, discovery_transport):
        discovery_transport.status_code = 500
        result = runner.invoke(cli, ["discovery", "proof-keys"])
        assert result.exit_code == 1
        assert "Not able to retrieve" in result.output
