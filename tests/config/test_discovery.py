"""Tests for config file discovery."""

from pathlib import Path

import pytest

from servicepipe.config.discovery import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    find_config,
    resolve_config_path,
)


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_finds_in_current_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[telemetry]\nenabled = true\n")
        assert find_config(tmp_path) == config_file.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert find_config(child) == config_file.resolve()

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        monkeypatch.chdir(tmp_path)
        assert find_config() == config_file.resolve()

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("")
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
        assert find_config(tmp_path) == config_file

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        assert find_config(tmp_path) is None

    def test_hidden_filename(self, tmp_path: Path) -> None:
        hidden = tmp_path / ".servicepipe.toml"
        hidden.write_text("")
        assert find_config(tmp_path) == hidden.resolve()

    def test_visible_filename_wins(self, tmp_path: Path) -> None:
        (tmp_path / ".servicepipe.toml").write_text("")
        visible = tmp_path / CONFIG_FILENAME
        visible.write_text("")
        assert find_config(tmp_path) == visible.resolve()

    def test_nearest_directory_wins(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        child = tmp_path / "service"
        child.mkdir()
        hidden = child / ".servicepipe.toml"
        hidden.write_text("")
        assert find_config(child) == hidden.resolve()


class TestResolveConfigPath:
    def test_relative_to_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "repo" / CONFIG_FILENAME
        assert resolve_config_path(Path("plugins"), config) == tmp_path / "repo" / "plugins"

    def test_absolute_unchanged(self, tmp_path: Path) -> None:
        assert resolve_config_path(tmp_path, Path("/elsewhere/servicepipe.toml")) == tmp_path

    def test_without_config_file(self) -> None:
        assert resolve_config_path(Path("plugins"), None) == Path("plugins")
