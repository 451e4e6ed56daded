"""Unit tests for settings loading and saving."""

import tomllib
from pathlib import Path

import pytest
from devcrawl.core.settings import (
    DevcrawlSettings,
    SettingsError,
    SettingsNotFoundError,
    SettingsParseError,
    dump_settings,
    load_settings,
    load_settings_or_default,
    save_settings,
)
from devcrawl.crawler.config import CrawlerSettings
from devcrawl.crawler.matcher import RuleDefinition, RuleDefinitions


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A config file with crawler settings and two rules."""
    path = tmp_path / "config.toml"
    path.write_text(
        "[crawler]\n"
        'sysfs_root = "/mnt/sys"\n'
        "queue_size = 8\n"
        "timeout_seconds = 2.5\n"
        "\n"
        "[[rules]]\n"
        'env = { SUBSYSTEM = "^net$" }\n'
        "\n"
        "[[rules]]\n"
        'env = { DRIVER = "^usb", DEVTYPE = "usb_device" }\n'
    )
    return path


class TestLoadSettings:
    """Tests for load_settings function."""

    def test_load_full_config(self, config_file: Path) -> None:
        """All sections are parsed and validated."""
        settings = load_settings(config_file)

        assert settings.crawler.sysfs_root == Path("/mnt/sys")
        assert settings.crawler.queue_size == 8
        assert settings.crawler.timeout_seconds == 2.5
        assert settings.crawler.uevent_filename == "uevent"
        assert [rule.env for rule in settings.rules] == [
            {"SUBSYSTEM": "^net$"},
            {"DRIVER": "^usb", "DEVTYPE": "usb_device"},
        ]

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        """An empty file is a valid config."""
        path = tmp_path / "config.toml"
        path.write_text("")

        settings = load_settings(path)

        assert settings.crawler == CrawlerSettings()
        assert settings.rules == []

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises SettingsNotFoundError."""
        with pytest.raises(SettingsNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises SettingsParseError."""
        path = tmp_path / "config.toml"
        path.write_text("[crawler\nqueue_size = ")

        with pytest.raises(SettingsParseError, match="Invalid TOML syntax"):
            load_settings(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise SettingsError."""
        path = tmp_path / "config.toml"
        path.write_text('[crawler]\nsysfs_root = "relative/sys"\n')

        with pytest.raises(SettingsError, match="Invalid config content"):
            load_settings(path)

    def test_unknown_section(self, tmp_path: Path) -> None:
        """Unknown top-level sections are rejected."""
        path = tmp_path / "config.toml"
        path.write_text('[udev]\nmonitor = true\n')

        with pytest.raises(SettingsError):
            load_settings(path)

    def test_uses_default_path(self, isolated_config_home: Path) -> None:
        """Without a path, the XDG config file is read."""
        config_dir = isolated_config_home / "devcrawl"
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text("[crawler]\nqueue_size = 3\n")

        assert load_settings().crawler.queue_size == 3


class TestLoadSettingsOrDefault:
    """Tests for load_settings_or_default function."""

    def test_defaults_when_default_file_missing(self) -> None:
        """A missing default config file yields defaults."""
        settings = load_settings_or_default()

        assert settings == DevcrawlSettings()

    def test_explicit_missing_path_raises(self, tmp_path: Path) -> None:
        """An explicitly given path must exist."""
        with pytest.raises(SettingsNotFoundError):
            load_settings_or_default(tmp_path / "missing.toml")

    def test_invalid_file_raises(self, tmp_path: Path) -> None:
        """An existing but invalid file is not silently ignored."""
        path = tmp_path / "config.toml"
        path.write_text("not = [valid")

        with pytest.raises(SettingsParseError):
            load_settings_or_default(path)


class TestSaveSettings:
    """Tests for save_settings and dump_settings."""

    def test_save_and_reload(self, config_file: Path, tmp_path: Path) -> None:
        """Saved settings load back unchanged."""
        settings = load_settings(config_file)
        target = tmp_path / "out" / "config.toml"

        written = save_settings(settings, target)

        assert written == target
        assert load_settings(target) == settings

    def test_save_defaults_to_xdg_path(self, isolated_config_home: Path) -> None:
        """Without a path, settings go to the XDG config file."""
        written = save_settings(DevcrawlSettings())

        assert written == isolated_config_home / "devcrawl" / "config.toml"
        assert written.exists()

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """The atomic write leaves no temporary files behind."""
        save_settings(DevcrawlSettings(), tmp_path / "config.toml")

        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]

    def test_unset_timeout_and_rules_omitted(self) -> None:
        """TOML output leaves out the unset timeout and empty rules."""
        data = tomllib.loads(dump_settings(DevcrawlSettings()))

        assert "timeout_seconds" not in data["crawler"]
        assert "rules" not in data
        assert data["crawler"]["sysfs_root"] == "/sys"
        assert data["crawler"]["queue_size"] == 64

    def test_dump_rules(self) -> None:
        """Rules are written as an array of tables."""
        settings = DevcrawlSettings(rules=[RuleDefinition(env={"SUBSYSTEM": "^block$"})])

        data = tomllib.loads(dump_settings(settings))

        assert data["rules"] == [{"env": {"SUBSYSTEM": "^block$"}}]

    def test_write_failure(self, tmp_path: Path) -> None:
        """Write errors are reported as SettingsError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        with pytest.raises(SettingsError, match="Failed to write config"):
            save_settings(DevcrawlSettings(), blocker / "config.toml")


class TestBuildMatcher:
    """Tests for DevcrawlSettings.build_matcher."""

    def test_no_rules_means_no_matcher(self) -> None:
        """Without rules every device is reported."""
        assert DevcrawlSettings().build_matcher() is None

    def test_rules_become_matcher(self, config_file: Path) -> None:
        """Stored rules are combined with OR."""
        matcher = load_settings(config_file).build_matcher()

        assert isinstance(matcher, RuleDefinitions)
        matcher.compile()
        assert matcher.evaluate_env({"SUBSYSTEM": "net"})
        assert matcher.evaluate_env({"DRIVER": "usbhid", "DEVTYPE": "usb_device"})
        assert not matcher.evaluate_env({"SUBSYSTEM": "block"})

    def test_matcher_does_not_share_rules(self, config_file: Path) -> None:
        """The matcher holds copies, leaving the settings untouched."""
        settings = load_settings(config_file)
        matcher = settings.build_matcher()

        assert matcher is not None
        matcher.add_rule(RuleDefinition(env={"NAME": "x"}))

        assert len(settings.rules) == 2
        assert matcher.rules[0] is not settings.rules[0]
