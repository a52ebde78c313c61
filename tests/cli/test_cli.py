"""Unit tests for CLI commands.

Tests CLI behavior using Click's CliRunner for isolated, fast testing.
Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from y3_bridge.cli import cli
from y3_bridge.exceptions import IpcConnectionError


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a config pointing the session log directory into tmp_path."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"log_dir": str(tmp_path / "sessions"), "port": 26000}))
    return path


def _write_log(log_dir: Path, name: str, lines: list[str], mtime: float) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / name
    path.write_text("".join(f"[2024-01-01T00:00:00.000Z] {line}\n" for line in lines))
    os.utime(path, (mtime, mtime))
    return path


class TestVersion:
    """Tests for --version flag."""

    @pytest.mark.parametrize("flag", ["--version", "-v"])
    def test_version_flag_shows_version(self, runner: CliRunner, flag: str) -> None:
        """Given --version or -v, returns the version string."""
        # Act
        result = runner.invoke(cli, [flag])

        # Assert
        assert result.exit_code == 0
        assert "y3-bridge 1.0.0" in result.output


class TestHelp:
    """Tests for help output."""

    def test_root_help_shows_commands(self, runner: CliRunner) -> None:
        """Given --help, shows available commands and the quick start."""
        # Act
        result = runner.invoke(cli, ["-h"])

        # Assert
        assert result.exit_code == 0
        for command in ("config", "logs", "serve", "tools"):
            assert command in result.output
        assert "Quick Start" in result.output

    def test_no_command_prints_help(self, runner: CliRunner) -> None:
        """Given no subcommand, prints help."""
        # Act
        result = runner.invoke(cli, [])

        # Assert
        assert result.exit_code == 0
        assert "Usage" in result.output


class TestTools:
    """Tests for the tools command."""

    def test_lists_tools(self, runner: CliRunner) -> None:
        """Given tools, lists every tool and marks required parameters."""
        # Act
        result = runner.invoke(cli, ["tools"])

        # Assert
        assert result.exit_code == 0
        assert "launch_game" in result.output
        assert "quick_restart" in result.output
        assert "code (required)" in result.output

    def test_json_output(self, runner: CliRunner) -> None:
        """Given --json, prints tool definitions as JSON."""
        # Act
        result = runner.invoke(cli, ["tools", "--json"])

        # Assert
        assert result.exit_code == 0
        tools = json.loads(result.output)
        assert [tool["name"] for tool in tools][:2] == ["launch_game", "get_logs"]
        assert all("inputSchema" in tool for tool in tools)


class TestConfigCommands:
    """Tests for config show/path."""

    def test_show_marks_defaults(self, runner: CliRunner, config_file: Path) -> None:
        """Given a config file, values not in it are marked (default)."""
        # Act
        result = runner.invoke(cli, ["config", "show", "--config", str(config_file)])

        # Assert
        assert result.exit_code == 0
        assert "port: 26000\n" in result.output
        assert "host: 127.0.0.1 (default)" in result.output

    def test_show_json(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        """Given --json, prints config with computed paths."""
        # Act
        result = runner.invoke(cli, ["config", "show", "--json", "--config", str(config_file)])

        # Assert
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["port"] == 26000
        assert data["_computed"]["config_file"] == str(config_file)
        assert data["_computed"]["system_log"] == str(tmp_path / "system.jsonl")

    def test_show_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Given a broken config file, exits 1 with an error."""
        # Arrange
        path = tmp_path / "config.json"
        path.write_text("{broken")

        # Act
        result = runner.invoke(cli, ["config", "show", "--config", str(path)])

        # Assert
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_path(self, runner: CliRunner, tmp_path: Path) -> None:
        """Given config path, prints the config file location."""
        # Arrange
        with patch(
            "y3_bridge.cli.commands.config.get_config_path",
            return_value=tmp_path / "config.json",
        ):
            # Act
            result = runner.invoke(cli, ["config", "path"])

        # Assert
        assert result.exit_code == 0
        assert str(tmp_path / "config.json") in result.output


class TestLogsCommands:
    """Tests for logs list/show."""

    def test_list_empty(self, runner: CliRunner, config_file: Path) -> None:
        """Given no session logs, says so."""
        # Act
        result = runner.invoke(cli, ["logs", "list", "--config", str(config_file)])

        # Assert
        assert result.exit_code == 0
        assert "No session logs" in result.output

    def test_list_newest_first(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        """Given two logs, lists the newest first."""
        # Arrange
        log_dir = tmp_path / "sessions"
        _write_log(log_dir, "session-session_1-1.log", ["a"], 1_000_000)
        _write_log(log_dir, "session-session_2-2.log", ["b"], 2_000_000)

        # Act
        result = runner.invoke(cli, ["logs", "list", "--config", str(config_file)])

        # Assert
        assert result.exit_code == 0
        assert result.output.index("session_2") < result.output.index("session_1")

    def test_show_tails_newest(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        """Given -n, shows the last N lines of the newest log."""
        # Arrange
        log_dir = tmp_path / "sessions"
        _write_log(log_dir, "session-session_1-1.log", ["old"], 1_000_000)
        _write_log(log_dir, "session-session_2-2.log", ["one", "two", "three"], 2_000_000)

        # Act
        result = runner.invoke(cli, ["logs", "show", "-n", "2", "--config", str(config_file)])

        # Assert
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "[2024-01-01T00:00:00.000Z] two",
            "[2024-01-01T00:00:00.000Z] three",
        ]

    def test_show_named_file(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        """Given a bare file name, reads it from the log directory."""
        # Arrange
        log_dir = tmp_path / "sessions"
        _write_log(log_dir, "session-session_1-1.log", ["picked"], 1_000_000)
        _write_log(log_dir, "session-session_2-2.log", ["newest"], 2_000_000)

        # Act
        result = runner.invoke(
            cli, ["logs", "show", "--config", str(config_file), "session-session_1-1.log"]
        )

        # Assert
        assert result.exit_code == 0
        assert "picked" in result.output
        assert "newest" not in result.output

    def test_show_missing_file(self, runner: CliRunner, config_file: Path) -> None:
        """Given a file that does not exist, exits 1."""
        # Act
        result = runner.invoke(cli, ["logs", "show", "--config", str(config_file), "absent.log"])

        # Assert
        assert result.exit_code == 1
        assert "Failed to read log file" in result.output


class TestServe:
    """Tests for the serve command."""

    def test_overrides_applied(self, runner: CliRunner, config_file: Path) -> None:
        """Given --port, the override reaches the front end config."""
        # Arrange
        run = AsyncMock()
        with (
            patch("y3_bridge.cli.commands.serve.configure_logging") as configure,
            patch("y3_bridge.cli.commands.serve.run_stdio_server", run),
        ):
            # Act
            result = runner.invoke(cli, ["serve", "--config", str(config_file), "--port", "27000", "--debug"])

        # Assert
        assert result.exit_code == 0
        config = run.await_args.args[0]
        assert config.port == 27000
        assert config.host == "127.0.0.1"
        assert configure.call_args.kwargs == {"debug": True}

    def test_bridge_unreachable(self, runner: CliRunner, config_file: Path) -> None:
        """Given no host listening, exits 1 with an error."""
        # Arrange
        run = AsyncMock(side_effect=IpcConnectionError("Cannot connect to bridge at 127.0.0.1:26000"))
        with (
            patch("y3_bridge.cli.commands.serve.configure_logging"),
            patch("y3_bridge.cli.commands.serve.run_stdio_server", run),
        ):
            # Act
            result = runner.invoke(cli, ["serve", "--config", str(config_file)])

        # Assert
        assert result.exit_code == 1
        assert "Failed to start MCP server" in result.output

    def test_invalid_port_rejected(self, runner: CliRunner) -> None:
        """Given a privileged port, click rejects it."""
        # Act
        result = runner.invoke(cli, ["serve", "--port", "80"])

        # Assert
        assert result.exit_code == 2

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        """Given a broken config file, exits 1 before serving."""
        # Arrange
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": 5}))
        run = AsyncMock()
        with patch("y3_bridge.cli.commands.serve.run_stdio_server", run):
            # Act
            result = runner.invoke(cli, ["serve", "--config", str(path)])

        # Assert
        assert result.exit_code == 1
        run.assert_not_called()
