"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler
from sysfs_fixtures import FakeSysfs


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at a temporary directory for every test."""
    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo the logging setup done by CLI invocations."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def fake_sysfs(tmp_path: Path) -> FakeSysfs:
    """Empty fake sysfs tree with a devices/ directory."""
    return FakeSysfs(tmp_path / "sys")


@pytest.fixture
def sample_sysfs(fake_sysfs: FakeSysfs) -> FakeSysfs:
    """Fake sysfs with two devices.

    - devices/A: NAME=foo, COLOR=red, no subsystem link
    - devices/B: NAME=bar, subsystem link to class/net
    """
    fake_sysfs.add_device("devices/A", "NAME=foo\nCOLOR=red\n")
    fake_sysfs.add_device("devices/B", "NAME=bar\n", subsystem="net")
    return fake_sysfs


@pytest.fixture
def realistic_sysfs(fake_sysfs: FakeSysfs) -> FakeSysfs:
    """Fake sysfs resembling a small machine."""
    fake_sysfs.add_device(
        "devices/pci0000:00/0000:00:1f.2",
        "DRIVER=ahci\nPCI_CLASS=10601\nPCI_ID=8086:A102\n",
        subsystem="pci",
    )
    fake_sysfs.add_device(
        "devices/pci0000:00/0000:00:1f.2/ata1/host0/target0:0:0/0:0:0:0/block/sda",
        "MAJOR=8\nMINOR=0\nDEVNAME=sda\nDEVTYPE=disk\n",
        subsystem="block",
    )
    fake_sysfs.add_device(
        "devices/virtual/net/lo",
        "INTERFACE=lo\nIFINDEX=1\n",
        subsystem="net",
    )
    return fake_sysfs
