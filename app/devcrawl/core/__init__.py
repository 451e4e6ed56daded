"""Configuration, paths and theming for devcrawl."""
