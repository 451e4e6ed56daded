"""Data models for devcrawl.

This module exports the data structures shared by the crawler and the CLI.
"""

from devcrawl.models.device import Device
from devcrawl.models.scan_result import DeviceScanResult, ScanMetadata

__all__ = [
    "Device",
    "DeviceScanResult",
    "ScanMetadata",
]
