"""Headless CMS content API: content types, content entries and entry version history."""

__version__ = "1.0.0"
