"""Device crawler.

This package walks the sysfs device tree, parses each device's uevent
file and streams the matching devices through a queue.
"""

from devcrawl.crawler.config import CrawlerSettings
from devcrawl.crawler.devpath import normalize_devpath
from devcrawl.crawler.engine import (
    END_OF_DEVICES,
    CrawlHandle,
    DeviceCrawler,
    existing_devices,
    iter_devices,
)
from devcrawl.crawler.errors import (
    CrawlAbortedError,
    CrawlerError,
    DevicePathError,
    MatcherCompileError,
    MatcherEvaluationError,
    TraversalError,
    UEventParseError,
)
from devcrawl.crawler.matcher import (
    Matcher,
    RuleDefinition,
    RuleDefinitions,
    parse_match_expression,
)
from devcrawl.crawler.uevent import parse_uevent

__all__ = [
    "END_OF_DEVICES",
    "CrawlAbortedError",
    "CrawlHandle",
    "CrawlerError",
    "CrawlerSettings",
    "DeviceCrawler",
    "DevicePathError",
    "Matcher",
    "MatcherCompileError",
    "MatcherEvaluationError",
    "RuleDefinition",
    "RuleDefinitions",
    "TraversalError",
    "UEventParseError",
    "existing_devices",
    "iter_devices",
    "normalize_devpath",
    "parse_match_expression",
    "parse_uevent",
]
