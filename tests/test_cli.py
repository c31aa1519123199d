"""Tests for the root servicepipe CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from servicepipe import __version__
from servicepipe.cli import cli
from servicepipe.services.telemetry import telemetry_enabled


@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("SERVICEPIPE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "servicepipe" in result.output
    assert "inspect" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


def test_json_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--json", "--version"])
    assert result.exit_code == 0


def test_log_json_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--log-json", "--version"])
    assert result.exit_code == 0


def test_verbose_enables_telemetry(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-v", "inspect", "--help"])
    assert result.exit_code == 0
    assert telemetry_enabled() is True


def test_telemetry_from_config(cli_runner: CliRunner, tmp_path: Path) -> None:
    (tmp_path / "servicepipe.toml").write_text("[telemetry]\nenabled = true\n")
    result = cli_runner.invoke(cli, ["inspect", "--help"])
    assert result.exit_code == 0
    assert telemetry_enabled() is True


def test_config_flag(cli_runner: CliRunner, tmp_path: Path) -> None:
    config = tmp_path / "other.toml"
    config.write_text("[telemetry]\nenabled = true\n")
    result = cli_runner.invoke(cli, ["-c", str(config), "inspect", "--help"])
    assert result.exit_code == 0
    assert telemetry_enabled() is True


def test_invalid_config_reports_error(cli_runner: CliRunner, tmp_path: Path) -> None:
    (tmp_path / "servicepipe.toml").write_text("[telemetry\n")
    result = cli_runner.invoke(cli, ["inspect", "servicepipe:BusinessService"])
    assert result.exit_code == 1
    assert "Invalid TOML" in result.output


def test_telemetry_flag(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--telemetry", "inspect", "--help"])
    assert result.exit_code == 0
    assert telemetry_enabled() is True


def test_telemetry_off_without_flag_or_config(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["inspect", "--help"])
    assert result.exit_code == 0
    assert telemetry_enabled() is False


def test_local_plugins_resolved_against_config_file(
    cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    plugins = tmp_path / "plugins"
    plugins.mkdir()
    (plugins / "cli_exports.py").write_text(
        "import pluggy\n"
        "hookimpl = pluggy.HookimplMarker('servicepipe')\n"
        "\n"
        "class ExportsPlugin:\n"
        "    @hookimpl\n"
        "    def register_commands(self, service_type):\n"
        "        return {'cli_export_command': {}}\n"
    )
    (tmp_path / "servicepipe.toml").write_text('[plugins]\nlocal_dir = "plugins"\n')
    nested = tmp_path / "src" / "app"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    module = tmp_path / "cli_export_target.py"
    module.write_text(
        "from servicepipe import BusinessService\n"
        "Exports = BusinessService.extend(name='Exports').service\n"
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    result = cli_runner.invoke(cli, ["--json", "inspect", "cli_export_target:Exports"])
    assert result.exit_code == 0, result.output
    assert "cli_export_command" in result.stdout
