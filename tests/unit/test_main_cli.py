"""Unit tests for the ghoodoo.main CLI module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ghoodoo.config.settings import GhoodooSettings
from ghoodoo.exceptions import ConfigurationError
from ghoodoo.main import cli
from tests.fakes import InMemoryTaskClient, make_commit, pull_request_payload


def run_replay(cli_runner: CliRunner, event_type: str, payload_file: Path):
    return cli_runner.invoke(cli, ["--log-level", "ERROR", "replay", "--event", event_type, str(payload_file)])


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings():
    return GhoodooSettings(
        github_webhook_secret="secret",
        github_token=None,
        odoo_url="https://odoo.example.com",
        odoo_database="testdb",
        odoo_api_key="key",
        odoo_stage_done="5",
        odoo_stage_in_progress="2",
    )


@pytest.fixture
def fake_tasks():
    return InMemoryTaskClient(task_ids=[123])


class TestParseCommand:
    def test_prints_references(self, cli_runner):
        result = cli_runner.invoke(cli, ["parse", "Closes ODP-123, refs ODP-45 and ODP-123"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["ODP-123\tclose", "ODP-45\tref"]

    def test_no_references(self, cli_runner):
        result = cli_runner.invoke(cli, ["parse", "Update README"])

        assert result.exit_code == 0
        assert "No task references found" in result.output


class TestReplayCommand:
    def test_replays_push(self, cli_runner, tmp_path, settings, fake_tasks):
        payload_file = tmp_path / "push.json"
        payload_file.write_text(json.dumps({"commits": [make_commit("Closes ODP-123")]}))

        with (
            patch("ghoodoo.main.load_settings", return_value=settings),
            patch("ghoodoo.main.OdooClient", return_value=fake_tasks),
        ):
            result = run_replay(cli_runner, "push", payload_file)

        assert result.exit_code == 0
        assert json.loads(result.output) == {"event": "push", "processed": 1, "errors": []}
        assert fake_tasks.task_stage == {123: 5}

    def test_errors_exit_two(self, cli_runner, tmp_path, settings, fake_tasks):
        payload_file = tmp_path / "pr.json"
        payload_file.write_text(json.dumps(pull_request_payload(title="Refs ODP-999")))

        with (
            patch("ghoodoo.main.load_settings", return_value=settings),
            patch("ghoodoo.main.OdooClient", return_value=fake_tasks),
        ):
            result = run_replay(cli_runner, "pull_request", payload_file)

        assert result.exit_code == 2
        assert json.loads(result.output)["errors"] == ["ODP-999: Task not found"]

    def test_malformed_payload_exits_one(self, cli_runner, tmp_path, settings, fake_tasks):
        payload_file = tmp_path / "pr.json"
        payload_file.write_text("{}")

        with (
            patch("ghoodoo.main.load_settings", return_value=settings),
            patch("ghoodoo.main.OdooClient", return_value=fake_tasks),
        ):
            result = run_replay(cli_runner, "pull_request", payload_file)

        assert result.exit_code == 1
        assert "Invalid pull_request payload" in result.output

    def test_configuration_error_exits_one(self, cli_runner, tmp_path):
        payload_file = tmp_path / "push.json"
        payload_file.write_text("{}")

        with patch("ghoodoo.main.load_settings", side_effect=ConfigurationError("Configuration file not found: x")):
            result = run_replay(cli_runner, "push", payload_file)

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_rejects_unknown_event(self, cli_runner, tmp_path):
        payload_file = tmp_path / "push.json"
        payload_file.write_text("{}")

        result = run_replay(cli_runner, "issues", payload_file)

        assert result.exit_code == 2


class TestServeCommand:
    def test_runs_uvicorn_with_loaded_settings(self, cli_runner, settings):
        with (
            patch("ghoodoo.main.load_settings", return_value=settings),
            patch("uvicorn.run") as run,
            patch("ghoodoo.webhook_server.settings", None),
        ):
            result = cli_runner.invoke(cli, ["serve", "--port", "9000"])

            from ghoodoo import webhook_server

            assert webhook_server.settings is settings

        assert result.exit_code == 0
        assert run.call_args.kwargs == {"host": "0.0.0.0", "port": 9000}

    def test_configuration_error(self, cli_runner):
        with (
            patch("ghoodoo.main.load_settings", side_effect=ConfigurationError("Invalid environment configuration")),
            patch("uvicorn.run") as run,
        ):
            result = cli_runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        run.assert_not_called()
