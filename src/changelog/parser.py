"""Markdown changelog parser.

Turns a changelog document into per-version release metadata keyed by
normalized version. Expected shape (newest release first)::

    ## Unreleased
    ...
    ## 3.1.34 - 2019-06-24 [CRITICAL]
    ### Fixed
    - Fixed a bug ...

    ## [3.1.33] - 2019-06-18
    ...

Release headings are ``#`` to ``####`` headings that start with a version.
Deeper headings inside a release belong to its notes; a non-version heading at
the release heading's level or above closes the current release.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from errors import VersionParseError
from versioning.models import Version
from versioning.parser import VersionLike, parse_version
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(?P<level>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
_RELEASE_RE = re.compile(
    r"^(?:version\s+)?\[?v?(?P<version>\d+(?:\.\d+){0,3}(?:[-_.]?[a-z]+(?:[.-]?\d+)?)?)\]?(?P<rest>.*)$",
    re.IGNORECASE,
)
_DATE_RE = re.compile(r"(?P<y>\d{4})[-/](?P<m>\d{1,2})[-/](?P<d>\d{1,2})")
_CRITICAL_RE = re.compile(r"\[critical\]", re.IGNORECASE)
_MAX_RELEASE_LEVEL = 4


@dataclass(frozen=True)
class ChangelogEntry:
    """Release metadata extracted from one changelog section."""
    critical: bool
    date: Optional[str]
    notes: str


def _parse_date(text: str) -> Optional[str]:
    """Return an ISO 8601 datetime (midnight UTC) for the first date in ``text``."""
    match = _DATE_RE.search(text)
    if not match:
        return None
    try:
        value = datetime(int(match.group("y")), int(match.group("m")), int(match.group("d")), tzinfo=timezone.utc)
    except ValueError:
        return None
    return value.isoformat()


def _release_heading(text: str) -> Optional[tuple]:
    """Return (version, rest) if heading text names a release."""
    match = _RELEASE_RE.match(text)
    if not match:
        return None
    try:
        version = parse_version(match.group("version"))
    except VersionParseError:
        return None
    return version, match.group("rest")


class ChangelogParser:
    """Parse changelog text into ``{normalized_version: ChangelogEntry}``."""

    def parse(self, text: str, lower_bound: Optional[VersionLike] = None) -> Dict[str, ChangelogEntry]:
        """Parse ``text``.

        Args:
            text: Raw Markdown changelog, newest release first.
            lower_bound: Only releases strictly newer than this are returned;
                parsing stops at the first release at or below it.

        Returns:
            Dict keyed by normalized version, in document order.
        """
        bound: Optional[Version] = parse_version(lower_bound) if lower_bound is not None else None
        entries: Dict[str, ChangelogEntry] = {}

        current: Optional[Version] = None
        current_level = 0
        current_rest = ""
        notes: List[str] = []

        def flush() -> None:
            if current is None or current.normalized in entries:
                return
            entries[current.normalized] = ChangelogEntry(
                critical=bool(_CRITICAL_RE.search(current_rest)),
                date=_parse_date(current_rest),
                notes="\n".join(notes).strip("\n"),
            )

        for line in (text or "").splitlines():
            heading = _HEADING_RE.match(line)
            if heading:
                level = len(heading.group("level"))
                release = _release_heading(heading.group("text")) if level <= _MAX_RELEASE_LEVEL else None
                if release is not None and (current is None or level <= current_level):
                    flush()
                    version, rest = release
                    if bound is not None and version <= bound:
                        current = None
                        break
                    current, current_level, current_rest, notes = version, level, rest, []
                    continue
                if current is not None and level <= current_level:
                    flush()
                    current = None
                    continue
            if current is not None:
                notes.append(line.rstrip())
        else:
            flush()

        if is_debug_enabled(logger):
            logger.debug(
                "Parsed changelog",
                extra=extra_context(
                    event="parse",
                    component="changelog",
                    action="parse",
                    count=len(entries),
                    lower_bound=bound.normalized if bound is not None else None,
                ),
            )
        return entries


def parse_changelog(text: str, lower_bound: Optional[VersionLike] = None) -> Dict[str, ChangelogEntry]:
    """Module-level convenience wrapper around :class:`ChangelogParser`."""
    return ChangelogParser().parse(text, lower_bound)
