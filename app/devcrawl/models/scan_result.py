"""Scan result model for JSON export.

This module defines the document written by ``devcrawl scan --export``
and printed by ``devcrawl scan --format json``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from devcrawl.models.device import Device


@dataclass(frozen=True, slots=True)
class ScanMetadata:
    """Metadata for a scan result.

    Attributes:
        timestamp: ISO format timestamp when the scan was performed.
        hostname: Name of the machine that was scanned.
        devcrawl_version: Version of devcrawl that performed the scan.
        sysfs_root: sysfs root the device identifiers are relative to.
        filters: Match expressions applied during the scan (immutable).
        complete: False when the crawl stopped early (limit, timeout, error).
    """

    timestamp: str
    hostname: str
    devcrawl_version: str
    sysfs_root: str
    filters: tuple[str, ...] = ()
    complete: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "hostname": self.hostname,
            "devcrawl_version": self.devcrawl_version,
            "sysfs_root": self.sysfs_root,
            "filters": list(self.filters),
            "complete": self.complete,
        }


@dataclass(frozen=True, slots=True)
class DeviceScanResult:
    """Complete scan result for export.

    Attributes:
        metadata: Scan metadata including timestamp and hostname.
        devices: Devices in crawl order.
        summary: Device counts per subsystem, plus 'total'.
    """

    metadata: ScanMetadata
    devices: list[Device]
    summary: dict[str, int] = field(default_factory=lambda: {})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metadata": self.metadata.to_dict(),
            "devices": [device.to_dict() for device in self.devices],
            "summary": self.summary,
        }

    @classmethod
    def create(
        cls,
        devices: list[Device],
        sysfs_root: str,
        filters: list[str] | None = None,
        complete: bool = True,
    ) -> DeviceScanResult:
        """Create a DeviceScanResult with auto-generated metadata.

        Args:
            devices: Devices received from the crawler.
            sysfs_root: sysfs root that was crawled.
            filters: Match expressions used to select devices.
            complete: Whether the crawl ran to completion.

        Returns:
            DeviceScanResult with populated metadata and summary.
        """
        import socket

        from devcrawl import __version__

        summary = count_by_subsystem(devices)
        summary["total"] = len(devices)

        metadata = ScanMetadata(
            timestamp=datetime.now(UTC).isoformat(),
            hostname=socket.gethostname(),
            devcrawl_version=__version__,
            sysfs_root=sysfs_root,
            filters=tuple(filters or ()),
            complete=complete,
        )

        return cls(metadata=metadata, devices=devices, summary=summary)


def count_by_subsystem(devices: list[Device]) -> dict[str, int]:
    """Count devices per subsystem.

    Devices without a subsystem link are counted under 'none'.

    Args:
        devices: Devices to count.

    Returns:
        Mapping of subsystem name to device count, sorted by name.
    """
    counts: dict[str, int] = {}
    for device in devices:
        key = device.subsystem or "none"
        counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items()))
