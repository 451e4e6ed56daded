"""Parser for sysfs ``uevent`` files.

A uevent file holds one ``KEY=VALUE`` entry per line, for example::

    MAJOR=8
    MINOR=0
    DEVNAME=sda
    DEVTYPE=disk
"""

from devcrawl.crawler.errors import UEventParseError


def parse_uevent(data: bytes, *, source: str | None = None) -> dict[str, str]:
    """Parse the raw content of a uevent file.

    Lines end at a line feed, and one trailing carriage return is dropped.
    Other control characters (form feed, U+2028, ...) stay in the value.
    Each line is split on the first ``=`` only, so values may themselves
    contain ``=``. Empty lines are ignored and a key defined twice keeps
    its last value.

    Bytes that are not valid UTF-8 are decoded as U+FFFD, so such values
    do not round-trip to the original bytes.

    Args:
        data: Raw bytes of the uevent file.
        source: Path of the file, used in error messages only.

    Returns:
        Mapping of uevent keys to values. Empty input yields an empty dict.

    Raises:
        UEventParseError: On the first line that is not ``KEY=VALUE``.
    """
    env: dict[str, str] = {}
    text = data.decode("utf-8", errors="replace")

    for lineno, line in enumerate(text.split("\n"), start=1):
        line = line.removesuffix("\r")
        if not line:
            continue

        key, sep, value = line.partition("=")
        if not sep or not key:
            raise UEventParseError(line, lineno, source)

        env[key] = value

    return env
