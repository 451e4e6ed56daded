"""Unit tests for XDG path management."""

from pathlib import Path

import pytest
from devcrawl.core.paths import (
    APP_NAME,
    get_config_dir,
    get_config_path,
    get_user_theme_path,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """get_config_dir falls back to ~/.config when XDG_CONFIG_HOME is not set."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)

        assert get_config_dir() == Path.home() / ".config" / APP_NAME

    def test_empty_xdg_config_home_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An empty XDG_CONFIG_HOME is treated as unset."""
        monkeypatch.setenv("XDG_CONFIG_HOME", "")

        assert get_config_dir() == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """get_config_dir respects XDG_CONFIG_HOME."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_config_dir() == tmp_path / APP_NAME


class TestConfigFiles:
    """Tests for file paths inside the config directory."""

    def test_config_path(self, isolated_config_home: Path) -> None:
        """config.toml lives in the config directory."""
        assert get_config_path() == isolated_config_home / "devcrawl" / "config.toml"

    def test_user_theme_path(self, isolated_config_home: Path) -> None:
        """theme.toml lives in the config directory."""
        assert get_user_theme_path() == isolated_config_home / "devcrawl" / "theme.toml"

    def test_paths_are_not_created(self, isolated_config_home: Path) -> None:
        """Computing paths has no side effects."""
        get_config_path()
        get_user_theme_path()

        assert not isolated_config_home.exists()
