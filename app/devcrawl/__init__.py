"""devcrawl - enumerate kernel devices by crawling sysfs."""

__version__ = "0.1.0"
