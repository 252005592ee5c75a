"""Release list building: candidate versions merged with changelog metadata."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from changelog.parser import ChangelogEntry, ChangelogParser
from common.logging_utils import Timer, extra_context, is_debug_enabled
from errors import ChangelogUnavailable, RegistryUnavailable
from registry.base import Registry, filter_versions
from versioning.models import StabilityTier, Version
from versioning.parser import VersionLike, parse_version
from .models import Release

logger = logging.getLogger(__name__)


def merge_changelog(releases: List[Release], changelog: Dict[str, ChangelogEntry]) -> List[Release]:
    """Left join changelog metadata onto ``releases`` by normalized key.

    Releases without a changelog entry are returned untouched; changelog
    entries without a matching release are dropped. Inputs are not modified.
    """
    merged = []
    for release in releases:
        entry = changelog.get(release.key)
        if entry is None:
            merged.append(release)
        else:
            merged.append(replace(release, critical=entry.critical, date=entry.date, notes=entry.notes))
    return merged


class ReleaseListBuilder:
    """Builds newest-first release lists for a package."""

    def __init__(self, registry: Registry, changelog_parser: Optional[ChangelogParser] = None):
        self.registry = registry
        self.changelog_parser = changelog_parser or ChangelogParser()

    def build(
        self,
        package: str,
        from_version: VersionLike,
        to_version: Optional[VersionLike] = None,
    ) -> List[Release]:
        """Return releases newer than ``from_version`` (up to ``to_version`` if given).

        An empty list means the package is already up to date.

        Raises:
            VersionParseError: ``from_version`` or ``to_version`` is malformed.
            RegistryUnavailable: the version listing could not be fetched.
        """
        installed = parse_version(from_version)
        upper = parse_version(to_version) if to_version is not None else None
        min_stability = min_stability_for(installed)

        with Timer() as timer:
            if upper is not None:
                candidates = self.registry.versions_between(package, installed, upper, min_stability)
            else:
                candidates = self.registry.versions_after(package, installed, min_stability)

            # Re-apply bounds so a loose registry cannot leak out-of-range versions
            versions = filter_versions(candidates, installed, upper, min_stability)
            if not versions:
                logger.debug("%s %s is up to date", package, installed.raw)
                return []

            versions.reverse()
            releases = [Release(version=v.raw, key=v.normalized) for v in versions]
            changelog = self._changelog(package, versions[0], installed)
            releases = merge_changelog(releases, changelog)

        if is_debug_enabled(logger):
            logger.debug(
                "Built release list",
                extra=extra_context(
                    event="decision",
                    component="releases",
                    action="build",
                    package=package,
                    from_version=installed.normalized,
                    to_version=upper.normalized if upper is not None else None,
                    min_stability=min_stability.label,
                    count=len(releases),
                    with_metadata=sum(1 for r in releases if r.has_metadata),
                    duration_ms=timer.duration_ms(),
                ),
            )
        return releases

    def _changelog(self, package: str, newest: Version, lower_bound: Version) -> Dict[str, ChangelogEntry]:
        """Fetch and parse the newest release's changelog; failures yield no metadata."""
        try:
            text = self.registry.changelog_for(package, newest)
            if not text:
                return {}
            if not isinstance(text, str):
                raise ChangelogUnavailable(f"Expected changelog text, got {type(text).__name__}")
            return self.changelog_parser.parse(text, lower_bound)
        except (RegistryUnavailable, ChangelogUnavailable) as exc:
            logger.warning("Changelog for %s %s unavailable: %s", package, newest.raw, exc)
            return {}


def min_stability_for(version: VersionLike) -> StabilityTier:
    """Minimum candidate tier for an installed version (``dev`` accepts all)."""
    return parse_version(version).stability
