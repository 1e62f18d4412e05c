"""Unit tests for the docstore command line."""

from unittest.mock import patch

from click.testing import CliRunner
from starlette.applications import Starlette

from docstore.cli import cli


class TestServe:
    def test_serve_builds_app_and_runs_uvicorn(self, monkeypatch):
        monkeypatch.setenv("DOCSTORE_ADMIN_TOKEN", "secret")
        with patch("uvicorn.run") as run:
            result = CliRunner().invoke(cli, ["serve", "--port", "9001", "--cache-ttl", "60", "--sweep-interval", "120"])

        assert result.exit_code == 0, result.output
        app = run.call_args.args[0]
        assert isinstance(app, Starlette)
        assert run.call_args.kwargs["port"] == 9001
        assert run.call_args.kwargs["host"] == "127.0.0.1"

    def test_serve_without_admin_token_is_usage_error(self, monkeypatch):
        monkeypatch.delenv("DOCSTORE_ADMIN_TOKEN", raising=False)
        monkeypatch.delenv("ADMIN_TOKEN", raising=False)
        with patch("uvicorn.run") as run:
            result = CliRunner().invoke(cli, ["serve"])

        assert result.exit_code == 2
        assert "admin token" in result.output
        run.assert_not_called()

    def test_sweep_interval_must_exceed_ttl(self, monkeypatch):
        monkeypatch.setenv("DOCSTORE_ADMIN_TOKEN", "secret")
        with patch("uvicorn.run") as run:
            result = CliRunner().invoke(cli, ["serve", "--cache-ttl", "600", "--sweep-interval", "600"])

        assert result.exit_code == 2
        run.assert_not_called()
