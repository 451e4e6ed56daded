"""Device record model.

This module defines the immutable value produced for every device
found while crawling sysfs.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class Device:
    """A kernel device discovered in the sysfs device tree.

    Attributes:
        identifier: Root-relative device path (e.g. '/devices/virtual/net/lo').
        attributes: Entries of the device's uevent file, plus SUBSYSTEM
            when the device has a subsystem link. Read-only.
    """

    identifier: str
    attributes: Mapping[str, str]

    def __post_init__(self) -> None:
        """Validate the identifier and freeze the attribute mapping."""
        if not self.identifier.startswith("/"):
            msg = f"Device identifier must start with '/', got {self.identifier!r}"
            raise ValueError(msg)
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def subsystem(self) -> str | None:
        """Subsystem name resolved from the device's subsystem link."""
        return self.attributes.get("SUBSYSTEM")

    @property
    def driver(self) -> str | None:
        """Bound driver name, if the kernel reports one."""
        return self.attributes.get("DRIVER")

    @property
    def devtype(self) -> str | None:
        return self.attributes.get("DEVTYPE")

    @property
    def devname(self) -> str | None:
        """Device node name relative to /dev (e.g. 'sda', 'input/event3')."""
        return self.attributes.get("DEVNAME")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "identifier": self.identifier,
            "attributes": dict(self.attributes),
        }
