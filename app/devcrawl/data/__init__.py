"""Bundled data files for devcrawl."""
