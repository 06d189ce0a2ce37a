"""Tests for the circmetrics CLI."""

from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from circmetrics.cli.app import app, main

runner = CliRunner()

TRAP_URL = "https://10.0.0.1:43191/module/httptrap/1111-2222/s3cr3t"


def test_version_command():
    """Test 'version' prints circmetrics version string."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "circmetrics version" in result.output


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert result.exit_code in (0, 2)
    assert "Usage" in result.output


def test_init_writes_config(tmp_path):
    """Test non-interactive init saves the given token and app."""
    path = tmp_path / "circmetrics.yaml"

    result = runner.invoke(
        app, ["init", "--config", str(path), "-y", "--token", "abc123", "--app", "billing"]
    )

    assert result.exit_code == 0
    assert "Configuration saved" in result.output
    saved = yaml.safe_load(path.read_text())
    assert saved["api"]["token"] == "abc123"
    assert saved["api"]["app"] == "billing"


def test_init_refuses_to_overwrite(tmp_path):
    path = tmp_path / "circmetrics.yaml"
    path.write_text("api:\n  token: keep\n")

    result = runner.invoke(app, ["init", "--config", str(path), "-y", "--token", "new"])

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert "keep" in path.read_text()


def test_init_warns_without_token(tmp_path):
    path = tmp_path / "circmetrics.yaml"

    result = runner.invoke(app, ["init", "--config", str(path), "-y"])

    assert result.exit_code == 0
    assert "No API token or submission URL" in result.output


def test_trap_command_delegates():
    with patch("circmetrics.cli.trap_cmd.trap_command") as mock_cmd:
        result = runner.invoke(app, ["trap", "--config", "x.yaml"])

    assert result.exit_code == 0
    mock_cmd.assert_called_once_with(config_path="x.yaml")


def test_clusters_command_delegates():
    with patch("circmetrics.cli.trap_cmd.clusters_command") as mock_cmd:
        result = runner.invoke(app, ["clusters", "--search", "requests"])

    assert result.exit_code == 0
    mock_cmd.assert_called_once_with(config_path=None, search="requests")


def test_trap_with_submission_url_only(tmp_path):
    """Test the trap command works offline when only a URL is configured."""
    path = tmp_path / "circmetrics.yaml"
    path.write_text(f"check:\n  submission_url: {TRAP_URL}\n")

    result = runner.invoke(app, ["trap", "--config", str(path)])

    assert result.exit_code == 0
    assert "disabled" in result.output
    assert TRAP_URL in result.output


def test_brokers_without_token(tmp_path):
    path = tmp_path / "circmetrics.yaml"
    path.write_text("")

    result = runner.invoke(app, ["brokers", "--config", str(path)])

    assert result.exit_code == 0
    assert "No API token configured" in result.output


def test_main_keyboard_interrupt():
    """Test main() handles KeyboardInterrupt with exit code 130."""
    with (
        patch("circmetrics.cli.app.app", side_effect=KeyboardInterrupt),
        patch("circmetrics.cli.app.sys") as mock_sys,
    ):
        main()
        mock_sys.exit.assert_called_with(130)


def test_main_exception():
    """Test main() handles unexpected exceptions with exit code 1."""
    with (
        patch("circmetrics.cli.app.app", side_effect=RuntimeError("boom")),
        patch("circmetrics.cli.app.sys") as mock_sys,
    ):
        main()
        mock_sys.exit.assert_called_with(1)


def test_log_level_from_config_file(tmp_path):
    """Test log_level in the config file applies without --log-level."""
    path = tmp_path / "circmetrics.yaml"
    path.write_text(f"log_level: DEBUG\ncheck:\n  submission_url: {TRAP_URL}\n")

    with patch("circmetrics.cli.app.configure_logging") as mock_configure:
        result = runner.invoke(app, ["trap", "--config", str(path)])

    assert result.exit_code == 0
    mock_configure.assert_called_with("DEBUG")


def test_log_level_option_overrides_config(tmp_path):
    path = tmp_path / "circmetrics.yaml"
    path.write_text("log_level: DEBUG\n")

    with patch("circmetrics.cli.app.configure_logging") as mock_configure:
        result = runner.invoke(app, ["--log-level", "error", "brokers", "--config", str(path)])

    assert result.exit_code == 0
    assert mock_configure.call_args_list[-1].args == ("ERROR",)
    assert all(call.args == ("ERROR",) for call in mock_configure.call_args_list)


def test_invalid_log_level_rejected():
    """Test an unknown --log-level is a usage error."""
    with patch("circmetrics.cli.app.configure_logging") as mock_configure:
        result = runner.invoke(app, ["--log-level", "foo", "version"])

    assert result.exit_code == 2
    assert "Invalid value" in result.output
    mock_configure.assert_not_called()
