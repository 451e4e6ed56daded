"""Device path normalization.

Devices are identified by their sysfs directory relative to the sysfs
root, re-prefixed with ``/`` (``/sys/devices/virtual/net/lo`` becomes
``/devices/virtual/net/lo``), which is the form the kernel uses for
DEVPATH.
"""

from pathlib import PurePosixPath

from devcrawl.crawler.errors import DevicePathError


def normalize_devpath(path: str | PurePosixPath, root: str | PurePosixPath) -> str:
    """Convert an absolute device directory into a root-relative identifier.

    Args:
        path: Absolute path of the directory holding a uevent file.
        root: Absolute path of the sysfs root (usually ``/sys``).

    Returns:
        Identifier starting with a single ``/``. The root itself maps to ``/``.

    Raises:
        DevicePathError: If path is not located under root.
    """
    try:
        relative = PurePosixPath(path).relative_to(PurePosixPath(root))
    except ValueError as e:
        raise DevicePathError(path, root) from e

    if ".." in relative.parts:
        raise DevicePathError(path, root)

    if relative == PurePosixPath("."):
        return "/"
    return f"/{relative.as_posix()}"
