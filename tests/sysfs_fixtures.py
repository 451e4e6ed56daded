"""Builders for fake sysfs trees used across the test suite."""

import os
from pathlib import Path

from devcrawl.crawler.config import CrawlerSettings


class FakeSysfs:
    """A sysfs-like directory tree rooted in a temporary directory.

    Args:
        root: Directory acting as the sysfs mount point (e.g. tmp_path / "sys").
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.devices = root / "devices"
        self.devices.mkdir(parents=True, exist_ok=True)

    def add_device(
        self,
        relpath: str,
        uevent: str | bytes = "",
        subsystem: str | None = None,
    ) -> Path:
        """Create a device directory with a uevent file.

        Args:
            relpath: Device directory relative to the root (e.g. 'devices/A').
            uevent: Content of the uevent file.
            subsystem: If set, add a relative 'subsystem' symlink pointing
                to class/<subsystem>, like the kernel does.

        Returns:
            Path of the device directory.
        """
        device_dir = self.root / relpath
        device_dir.mkdir(parents=True, exist_ok=True)
        data = uevent.encode() if isinstance(uevent, str) else uevent
        (device_dir / "uevent").write_bytes(data)
        if subsystem is not None:
            self.link_subsystem(device_dir, subsystem)
        return device_dir

    def link_subsystem(self, device_dir: Path, subsystem: str) -> Path:
        """Point device_dir/subsystem at class/<subsystem> with a relative link."""
        class_dir = self.root / "class" / subsystem
        class_dir.mkdir(parents=True, exist_ok=True)
        link = device_dir / "subsystem"
        link.symlink_to(os.path.relpath(class_dir, device_dir))
        return link

    def settings(self, **overrides: object) -> CrawlerSettings:
        """Crawler settings pointing at this tree."""
        return CrawlerSettings.model_validate({"sysfs_root": self.root, **overrides})
