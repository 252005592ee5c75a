"""Changelog parsing: raw Markdown text to per-version release metadata."""

from .parser import ChangelogEntry, ChangelogParser, parse_changelog

__all__ = ["ChangelogEntry", "ChangelogParser", "parse_changelog"]
