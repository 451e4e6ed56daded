"""Crawler settings and stored match rules.

Settings are read from ~/.config/devcrawl/config.toml::

    [crawler]
    sysfs_root = "/sys"
    queue_size = 64

    [[rules]]
    env = { SUBSYSTEM = "^net$" }

Every key is optional; a missing file means all defaults.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devcrawl.core.paths import get_config_path
from devcrawl.crawler.config import CrawlerSettings
from devcrawl.crawler.matcher import RuleDefinition, RuleDefinitions

logger = logging.getLogger(__name__)


class DevcrawlSettings(BaseModel):
    """Top-level content of config.toml."""

    model_config = ConfigDict(extra="forbid")

    crawler: CrawlerSettings = Field(default_factory=CrawlerSettings)
    rules: list[RuleDefinition] = Field(default_factory=list)

    def build_matcher(self) -> RuleDefinitions | None:
        """Build a matcher from the stored rules.

        Returns:
            RuleDefinitions, or None when no rules are configured so that
            every device is reported.
        """
        if not self.rules:
            return None
        return RuleDefinitions(rules=[rule.model_copy(deep=True) for rule in self.rules])


class SettingsError(Exception):
    """Base exception for settings errors."""


class SettingsNotFoundError(SettingsError):
    """Raised when the settings file is not found."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


def load_settings(path: Path | None = None) -> DevcrawlSettings:
    """Load settings from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated DevcrawlSettings object.

    Raises:
        SettingsNotFoundError: If the config file doesn't exist.
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise SettingsNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read config: {e}") from e

    try:
        return DevcrawlSettings.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise SettingsError(f"Invalid config content: {e}") from e


def load_settings_or_default(path: Path | None = None) -> DevcrawlSettings:
    """Load settings, falling back to defaults when no config file exists.

    An explicitly given path must exist; only the default location may
    be absent.

    Raises:
        SettingsError: If the file exists but is invalid, or an explicit
            path does not exist.
    """
    try:
        return load_settings(path)
    except SettingsNotFoundError:
        if path is not None:
            raise
        logger.debug("No config file at %s, using defaults", get_config_path())
        return DevcrawlSettings()


def save_settings(settings: DevcrawlSettings, path: Path | None = None) -> Path:
    """Save settings to a TOML file.

    The file is written to a temporary file in the same directory and
    moved into place with os.replace().

    Args:
        settings: The settings to save.
        path: Path to save to. If None, uses the default config path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    data = _settings_to_dict(settings)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write config: {e}") from e

    return config_path


def _settings_to_dict(settings: DevcrawlSettings) -> dict[str, object]:
    """Convert settings to a dictionary for TOML serialization.

    TOML has no null, so an unset timeout is left out.
    """
    crawler = settings.crawler
    crawler_data: dict[str, object] = {
        "sysfs_root": str(crawler.sysfs_root),
        "devices_dir": crawler.devices_dir,
        "uevent_filename": crawler.uevent_filename,
        "subsystem_link": crawler.subsystem_link,
        "queue_size": crawler.queue_size,
    }
    if crawler.timeout_seconds is not None:
        crawler_data["timeout_seconds"] = crawler.timeout_seconds

    result: dict[str, object] = {"crawler": crawler_data}
    if settings.rules:
        result["rules"] = [{"env": dict(rule.env)} for rule in settings.rules]
    return result


def dump_settings(settings: DevcrawlSettings) -> str:
    """Render settings as TOML text, as save_settings() would write them."""
    return tomli_w.dumps(_settings_to_dict(settings))
