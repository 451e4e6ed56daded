"""Crawler configuration.

Describes where the device tree lives and how it is laid out. The
defaults match a standard Linux sysfs mount.
"""

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SYSFS_ROOT = Path("/sys")
DEFAULT_QUEUE_SIZE = 64


class CrawlerSettings(BaseModel):
    """Where and how the device tree is crawled.

    Attributes:
        sysfs_root: Mount point of sysfs; device identifiers are relative to it.
        devices_dir: Directory under sysfs_root that holds the device tree.
        uevent_filename: Name of the per-device metadata file.
        subsystem_link: Name of the per-device symlink naming its subsystem.
        queue_size: Capacity of the device queue (0 = unbounded).
        timeout_seconds: Cancel the crawl after this many seconds (CLI only).
    """

    model_config = ConfigDict(extra="forbid")

    sysfs_root: Annotated[
        Path,
        Field(description="sysfs mount point"),
    ] = DEFAULT_SYSFS_ROOT
    devices_dir: Annotated[
        str,
        Field(min_length=1, description="Device tree directory, relative to sysfs_root"),
    ] = "devices"
    uevent_filename: Annotated[
        str,
        Field(min_length=1, description="Per-device metadata file name"),
    ] = "uevent"
    subsystem_link: Annotated[
        str,
        Field(min_length=1, description="Per-device subsystem symlink name"),
    ] = "subsystem"
    queue_size: Annotated[
        int,
        Field(ge=0, description="Device queue capacity (0 = unbounded)"),
    ] = DEFAULT_QUEUE_SIZE
    timeout_seconds: Annotated[
        float | None,
        Field(gt=0, description="Crawl deadline in seconds (None = no deadline)"),
    ] = None

    @field_validator("sysfs_root")
    @classmethod
    def validate_sysfs_root(cls, v: Path) -> Path:
        """Require an absolute sysfs root."""
        if not v.is_absolute():
            msg = f"sysfs_root must be an absolute path, got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("devices_dir")
    @classmethod
    def validate_devices_dir(cls, v: str) -> str:
        """Require devices_dir to stay below sysfs_root."""
        if v.startswith("/") or ".." in Path(v).parts:
            msg = f"devices_dir must be relative to sysfs_root, got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def devices_root(self) -> Path:
        """Directory the crawl starts from (e.g. /sys/devices)."""
        return self.sysfs_root / self.devices_dir

