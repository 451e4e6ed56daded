"""Error types raised while crawling the device tree.

Every error that can end a crawl session derives from CrawlerError. An
unexpected exception inside the crawl thread is put on the error queue as
a plain CrawlerError with the original exception chained as ``__cause__``.
CrawlAbortedError is kept distinct from the failure types so a
caller can tell "cancelled" apart from "failed".
"""

from pathlib import Path


class CrawlerError(Exception):
    """Base exception for all device crawler errors."""


class MatcherCompileError(CrawlerError):
    """Raised when a matcher cannot be compiled before the crawl starts."""


class UEventParseError(CrawlerError):
    """Raised when a uevent file contains a line that is not KEY=VALUE.

    Attributes:
        line: The offending line, as read from the file.
        lineno: 1-based line number of the offending line.
        source: Path of the uevent file, if known.
    """

    def __init__(self, line: str, lineno: int, source: str | None = None) -> None:
        self.line = line
        self.lineno = lineno
        self.source = source
        location = f"{source}:{lineno}" if source else f"line {lineno}"
        super().__init__(f"Malformed uevent entry at {location}: {line!r}")


class DevicePathError(CrawlerError):
    """Raised when a device directory does not lie under the sysfs root.

    Attributes:
        path: The path that failed to normalize.
        root: The sysfs root it was expected to be under.
    """

    def __init__(self, path: str | Path, root: str | Path) -> None:
        self.path = str(path)
        self.root = str(root)
        super().__init__(f"Device path {self.path} is not under {self.root}")


class TraversalError(CrawlerError):
    """Raised when the filesystem cannot be read while crawling.

    The underlying OSError is chained as ``__cause__``.

    Attributes:
        path: The entry being visited when the error occurred.
    """

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        super().__init__(f"Cannot read {self.path}: {reason}")


class CrawlAbortedError(CrawlerError):
    """Raised when the caller cancelled the crawl."""

    def __init__(self) -> None:
        super().__init__("Crawl aborted: cancellation requested")


class MatcherEvaluationError(CrawlerError):
    """Raised when the matcher fails while evaluating a device.

    The exception raised by the matcher is chained as ``__cause__``.

    Attributes:
        identifier: Identifier of the device being evaluated.
    """

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        super().__init__(f"Matcher failed on {identifier}: {reason}")
