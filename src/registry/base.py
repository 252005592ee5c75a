"""Registry interface consumed by the update resolver.

Concrete registries only have to list a package's versions (with their
host-package requirements) and fetch changelog text; range queries and
compatibility lookups are shared here.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from constants import Constants
from versioning.constraints import ConstraintParseError, parse_constraint
from versioning.models import StabilityTier, Version
from versioning.parser import VersionLike, parse_version

logger = logging.getLogger(__name__)

Requirements = Dict[str, str]


def filter_versions(
    versions: Iterable[Version],
    lower: Optional[Version],
    upper: Optional[Version],
    min_stability: StabilityTier,
) -> List[Version]:
    """Return versions in ``(lower, upper]`` that pass ``min_stability``, ascending and unique.

    Args:
        versions: Candidate versions in any order.
        lower: Exclusive lower bound, or None.
        upper: Inclusive upper bound, or None.
        min_stability: Minimum tier; ``dev`` accepts every tier.
    """
    selected = {}
    for version in versions:
        if lower is not None and version <= lower:
            continue
        if upper is not None and version > upper:
            continue
        if not min_stability.accepts(version.stability):
            continue
        selected.setdefault(version.normalized, version)
    return sorted(selected.values())


class Registry:
    """Base class for package registries."""

    def __init__(self, host_package: str = Constants.CORE_PACKAGE):
        self.host_package = host_package

    @property
    def name(self) -> str:
        """Short registry name used in logs."""
        raise NotImplementedError

    def list_versions(self, package: str) -> List[Version]:
        """Return every released version of ``package`` (any order).

        Raises:
            RegistryUnavailable: the registry could not be reached.
        """
        raise NotImplementedError

    def requirements(self, package: str) -> List[Tuple[Version, Requirements]]:
        """Return ``(version, requires)`` pairs. Registries without requirement data report none."""
        return [(version, {}) for version in self.list_versions(package)]

    def changelog_for(self, package: str, version: VersionLike) -> Optional[str]:
        """Return the raw changelog shipped with ``version``, or None if unknown.

        Raises:
            RegistryUnavailable: the registry could not be reached.
        """
        raise NotImplementedError

    def versions_after(
        self,
        package: str,
        from_version: VersionLike,
        min_stability: StabilityTier,
    ) -> List[Version]:
        """Versions strictly newer than ``from_version``, ascending."""
        return filter_versions(self.list_versions(package), parse_version(from_version), None, min_stability)

    def versions_between(
        self,
        package: str,
        from_version: VersionLike,
        to_version: VersionLike,
        min_stability: StabilityTier,
    ) -> List[Version]:
        """Versions in ``(from_version, to_version]``, ascending."""
        return filter_versions(
            self.list_versions(package),
            parse_version(from_version),
            parse_version(to_version),
            min_stability,
        )

    def latest_compatible(
        self,
        package: str,
        host_version: VersionLike,
        min_stability: StabilityTier = StabilityTier.STABLE,
    ) -> Optional[Version]:
        """Newest version of ``package`` whose host requirement accepts ``host_version``.

        Versions that do not declare a requirement on the host package are
        considered compatible. Unparseable constraints are skipped.
        """
        host = parse_version(host_version)
        best: Optional[Version] = None
        for version, requires in self.requirements(package):
            if not min_stability.accepts(version.stability):
                continue
            if best is not None and version <= best:
                continue
            constraint = requires.get(self.host_package)
            if constraint is not None:
                try:
                    if not parse_constraint(constraint).matches(host):
                        continue
                except ConstraintParseError as exc:
                    logger.debug("Skipping %s %s: %s", package, version.raw, exc)
                    continue
            best = version
        return best
