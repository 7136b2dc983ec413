"""Unit tests for the conduit CLI."""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import SecretStr
from typer.testing import CliRunner

from conduit.cli.main import app


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


class TestCatalogCommand:
    def test_lists_platforms(self, runner):
        result = runner.invoke(app, ["catalog"])

        assert result.exit_code == 0
        for platform in ("airtable", "openai", "splynx", "vapi"):
            assert platform in result.stdout

    def test_shows_platform(self, runner):
        result = runner.invoke(app, ["catalog", "vapi"])

        assert result.exit_code == 0
        assert "call_started" in result.stdout

    def test_unknown_platform(self, runner):
        result = runner.invoke(app, ["catalog", "myspace"])

        assert result.exit_code == 1
        assert "No catalog" in result.stdout


class TestGenerateKey:
    def test_prints_fresh_key(self, runner):
        first = runner.invoke(app, ["generate-key"]).stdout.strip()
        second = runner.invoke(app, ["generate-key"]).stdout.strip()

        assert len(first) >= 40
        assert first != second


class TestCheckConfig:
    def test_valid(self, runner, test_settings):
        with patch("conduit.cli.main.get_settings", return_value=test_settings):
            result = runner.invoke(app, ["check-config"])

        assert result.exit_code == 0
        assert "vault key configured" in result.stdout
        assert "test:test" not in result.stdout

    def test_missing_vault_key(self, runner, test_settings):
        test_settings.credential_encryption_key = SecretStr("")
        with patch("conduit.cli.main.get_settings", return_value=test_settings):
            result = runner.invoke(app, ["check-config"])

        assert result.exit_code == 1
        assert "ENCRYPTION_KEY" in result.stdout


class TestServe:
    def test_refuses_without_vault_key(self, runner, test_settings):
        test_settings.credential_encryption_key = SecretStr("")
        with (
            patch("conduit.cli.main.get_settings", return_value=test_settings),
            patch("uvicorn.run") as mock_run,
        ):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        mock_run.assert_not_called()

    def test_starts_uvicorn_factory(self, runner, test_settings):
        with (
            patch("conduit.cli.main.get_settings", return_value=test_settings),
            patch("uvicorn.run") as mock_run,
        ):
            result = runner.invoke(app, ["serve", "--port", "9000"])

        assert result.exit_code == 0
        args, kwargs = mock_run.call_args
        assert args == ("conduit.api.main:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9000


class TestInitDb:
    def test_creates_tables_and_closes(self, runner):
        with (
            patch("conduit.storage.create_tables", new_callable=AsyncMock) as mock_create,
            patch("conduit.storage.close_db", new_callable=AsyncMock) as mock_close,
        ):
            result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        mock_create.assert_awaited_once()
        mock_close.assert_awaited_once()
