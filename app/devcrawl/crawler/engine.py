"""Traversal engine for existing devices.

Crawls the sysfs device tree in a background thread and streams every
matching device through a queue::

    devices: queue.Queue[Device | None] = queue.Queue(maxsize=64)
    errors: queue.Queue[CrawlerError] = queue.Queue()

    handle = existing_devices(devices, errors, matcher)
    for device in iter_devices(devices):
        print(device.identifier)

The device queue is closed by putting END_OF_DEVICES once the crawl ends,
whether it completed, failed or was cancelled. Errors are put on the
error queue before the device queue is closed, so a consumer that has
seen the end of the device stream can drain the error queue without
blocking.
"""

import logging
import queue
import stat
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from devcrawl.crawler.config import CrawlerSettings
from devcrawl.crawler.devpath import normalize_devpath
from devcrawl.crawler.errors import (
    CrawlAbortedError,
    CrawlerError,
    MatcherCompileError,
    MatcherEvaluationError,
    TraversalError,
)
from devcrawl.crawler.matcher import Matcher
from devcrawl.crawler.uevent import parse_uevent
from devcrawl.models.device import Device

logger = logging.getLogger(__name__)

# Marker put on the device queue when the crawl session ends
END_OF_DEVICES: Final = None

DeviceQueue = queue.Queue[Device | None]
ErrorQueue = queue.Queue[CrawlerError]


@dataclass(frozen=True, slots=True)
class _Entry:
    """A filesystem entry reached by the walk.

    Attributes:
        path: Absolute path of the entry.
        is_dir: True for real directories (symlinks are never followed).
        error: Error raised while stat'ing or listing the entry, if any.
    """

    path: Path
    is_dir: bool
    error: OSError | None = None


def _walk(path: Path) -> Iterator[_Entry]:
    """Walk a tree depth-first, pre-order, children in lexical order.

    Symbolic links are reported as plain entries and never descended
    into. A directory whose listing fails is reported a second time with
    the error attached.
    """
    try:
        mode = path.lstat().st_mode
    except OSError as e:
        yield _Entry(path, is_dir=False, error=e)
        return

    is_dir = stat.S_ISDIR(mode)
    yield _Entry(path, is_dir=is_dir)
    if not is_dir:
        return

    try:
        children = sorted(child.name for child in path.iterdir())
    except OSError as e:
        yield _Entry(path, is_dir=True, error=e)
        return

    for name in children:
        yield from _walk(path / name)


def iter_devices(devices: DeviceQueue) -> Iterator[Device]:
    """Yield devices from a device queue until it is closed.

    Blocks while the crawl is still producing.
    """
    while True:
        device = devices.get()
        if device is END_OF_DEVICES:
            return
        yield device


class CrawlHandle:
    """Cancellation handle for a running crawl session.

    Args:
        cancel_event: Event the crawl thread checks before each entry.
        thread: The crawl thread, or None if the session never started.
    """

    def __init__(
        self,
        cancel_event: threading.Event,
        thread: threading.Thread | None = None,
    ) -> None:
        self._cancel_event = cancel_event
        self._thread = thread

    def cancel(self) -> None:
        """Request the crawl to stop at its next step.

        Safe to call any number of times, from any thread.
        """
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._cancel_event.is_set()

    @property
    def done(self) -> bool:
        """Whether the crawl thread has finished (or was never started)."""
        return self._thread is None or not self._thread.is_alive()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the crawl thread to finish.

        The device queue must be drained concurrently when it is bounded,
        otherwise the crawl thread stays blocked on it.

        Args:
            timeout: Maximum seconds to wait (None = no limit).

        Returns:
            True if the crawl has finished.
        """
        if self._thread is not None:
            self._thread.join(timeout)
        return self.done


class DeviceCrawler:
    """Walks the sysfs device tree and emits matching devices.

    The matcher, if any, must already be compiled; existing_devices()
    takes care of that.

    Args:
        settings: Crawler settings. Defaults to the standard sysfs layout.
        matcher: Optional predicate deciding which devices are emitted.
    """

    def __init__(
        self,
        settings: CrawlerSettings | None = None,
        matcher: Matcher | None = None,
    ) -> None:
        self._settings = settings or CrawlerSettings()
        self._matcher = matcher

    def run(
        self,
        devices: DeviceQueue,
        errors: ErrorQueue,
        cancel_event: threading.Event,
    ) -> None:
        """Crawl the device tree once.

        Puts matching devices on ``devices`` in walk order. The first
        error ends the crawl and is put on ``errors``. END_OF_DEVICES is
        always put on ``devices`` last.
        """
        root = self._settings.devices_root
        logger.debug("Crawling devices under %s", root)
        emitted = 0
        try:
            for device in self._crawl(root, cancel_event):
                devices.put(device)
                emitted += 1
        except CrawlAbortedError as e:
            logger.debug("Crawl of %s cancelled after %d devices", root, emitted)
            errors.put(e)
        except CrawlerError as e:
            logger.warning("Crawl of %s failed: %s", root, e)
            errors.put(e)
        except Exception as e:
            logger.exception("Unexpected error while crawling %s", root)
            error = CrawlerError(f"Unexpected error while crawling {root}: {e!r}")
            error.__cause__ = e
            errors.put(error)
        else:
            logger.debug("Crawl of %s finished, %d devices emitted", root, emitted)
        finally:
            devices.put(END_OF_DEVICES)

    def _crawl(self, root: Path, cancel_event: threading.Event) -> Iterator[Device]:
        """Yield matching devices, raising on the first error."""
        for entry in _walk(root):
            if cancel_event.is_set():
                raise CrawlAbortedError()

            if entry.error is not None:
                reason = entry.error.strerror or str(entry.error)
                raise TraversalError(entry.path, reason) from entry.error

            if entry.is_dir or entry.path.name != self._settings.uevent_filename:
                continue

            device = self._read_device(entry.path)
            if self._matches(device):
                yield device

    def _matches(self, device: Device) -> bool:
        """Evaluate the matcher against a device's attributes.

        Raises:
            MatcherEvaluationError: If the matcher itself raises.
        """
        if self._matcher is None:
            return True
        try:
            return bool(self._matcher.evaluate_env(device.attributes))
        except Exception as e:
            raise MatcherEvaluationError(device.identifier, repr(e)) from e

    def _read_device(self, uevent_path: Path) -> Device:
        """Build a Device from its uevent file and subsystem link.

        Raises:
            TraversalError: If the uevent file cannot be read.
            UEventParseError: If the uevent file is malformed.
            DevicePathError: If the device is not under the sysfs root.
        """
        try:
            data = uevent_path.read_bytes()
        except OSError as e:
            raise TraversalError(uevent_path, e.strerror or str(e)) from e

        attributes = parse_uevent(data, source=str(uevent_path))

        device_dir = uevent_path.parent
        identifier = normalize_devpath(device_dir, self._settings.sysfs_root)

        subsystem = self._read_subsystem(device_dir)
        if subsystem is not None:
            attributes["SUBSYSTEM"] = subsystem

        return Device(identifier=identifier, attributes=attributes)

    def _read_subsystem(self, device_dir: Path) -> str | None:
        """Resolve the subsystem name from the device's subsystem link.

        Returns:
            Final path segment of the link target, or None when the device
            has no readable subsystem link.
        """
        link = device_dir / self._settings.subsystem_link
        try:
            target = link.readlink()
        except OSError as e:
            logger.debug("No subsystem for %s: %s", device_dir, e)
            return None
        return target.name or None


def existing_devices(
    devices: DeviceQueue,
    errors: ErrorQueue,
    matcher: Matcher | None = None,
    *,
    settings: CrawlerSettings | None = None,
) -> CrawlHandle:
    """Start crawling the existing devices in a background thread.

    The matcher is compiled before the thread starts. If compilation
    fails, the error is put on ``errors``, the device queue is closed
    right away and the returned handle is already done.

    Args:
        devices: Queue receiving matching devices, then END_OF_DEVICES.
            A bounded queue makes the crawl wait for a slow consumer.
        errors: Queue receiving the error that ended the crawl, if any.
        matcher: Optional predicate; None reports every device.
        settings: Crawler settings. Defaults to the standard sysfs layout.

    Returns:
        Handle used to cancel the crawl or wait for it.
    """
    cancel_event = threading.Event()

    if matcher is not None:
        try:
            matcher.compile()
        except MatcherCompileError as e:
            logger.warning("Matcher failed to compile: %s", e)
            errors.put(e)
            devices.put(END_OF_DEVICES)
            return CrawlHandle(cancel_event)

    crawler = DeviceCrawler(settings, matcher)
    thread = threading.Thread(
        target=crawler.run,
        args=(devices, errors, cancel_event),
        name="devcrawl-crawler",
        daemon=True,
    )
    thread.start()
    return CrawlHandle(cancel_event, thread)
