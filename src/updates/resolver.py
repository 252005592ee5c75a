"""Per-component update status resolution.

Status is decided in two steps:

1. breakpoint classification picks ``breakpoint`` (with a forced target) or
   ``eligible`` (latest, or latest host-compatible for plugins);
2. an expired license overrides either outcome with ``expired`` and attaches
   the renewal fields. The release list is returned regardless.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from registry.base import Registry
from versioning.parser import VersionLike, compare_versions, parse_version
from .breakpoints import CORE_BREAKPOINTS, NO_BREAKPOINTS, BreakpointTable
from .models import InstalledPlugin, LicenseState, UpdateInfo, UpdateStatus
from .releases import ReleaseListBuilder

logger = logging.getLogger(__name__)


def should_include_package_name(core_version: VersionLike) -> bool:
    """Return True if a core at ``core_version`` understands the ``packageName`` field."""
    version = parse_version(core_version)
    if compare_versions(version, Constants.PACKAGE_NAME_MIN_CORE_VERSION) < 0:
        return False
    return all(version != parse_version(v) for v in Constants.PACKAGE_NAME_EXCLUDED_CORE_VERSIONS)


def _apply_license(info: UpdateInfo, license_state: Optional[LicenseState]) -> UpdateInfo:
    if license_state is None or not license_state.expired:
        return info
    return UpdateInfo(
        status=UpdateStatus.EXPIRED,
        releases=info.releases,
        renewal_url=license_state.renewal_url,
        renewal_price=license_state.renewal_price,
        renewal_currency=license_state.renewal_currency,
        package_name=info.package_name,
    )


class UpdateStatusResolver:
    """Resolve :class:`UpdateInfo` for the core application and its plugins."""

    def __init__(
        self,
        registry: Registry,
        core_package: str = Constants.CORE_PACKAGE,
        core_breakpoints: BreakpointTable = CORE_BREAKPOINTS,
        plugin_breakpoints: Optional[Dict[str, BreakpointTable]] = None,
        builder: Optional[ReleaseListBuilder] = None,
    ):
        self.registry = registry
        self.core_package = core_package
        self.core_breakpoints = core_breakpoints
        self.plugin_breakpoints = plugin_breakpoints or {}
        self.builder = builder or ReleaseListBuilder(registry)

    def resolve_core(
        self,
        installed: VersionLike,
        license_state: Optional[LicenseState] = None,
        include_package_name: bool = False,
    ) -> UpdateInfo:
        """Resolve the core application.

        Raises:
            VersionParseError: ``installed`` is malformed.
            RegistryUnavailable: the registry could not be reached.
        """
        version = parse_version(installed)
        rule = self.core_breakpoints.classify(version)
        status = UpdateStatus.BREAKPOINT if rule else UpdateStatus.ELIGIBLE
        releases = self.builder.build(self.core_package, version, rule.target if rule else None)

        info = UpdateInfo(
            status=status,
            releases=releases,
            package_name=self.core_package if include_package_name else None,
        )
        info = _apply_license(info, license_state)
        self._log_resolution(self.core_package, version.raw, info)
        return info

    def resolve_plugin(
        self,
        plugin: InstalledPlugin,
        host_version: VersionLike,
        license_state: Optional[LicenseState] = None,
        include_package_name: bool = False,
    ) -> UpdateInfo:
        """Resolve one plugin against the installed core (host) version.

        Without a breakpoint the upper bound is the newest release compatible
        with ``host_version``; if there is none the plugin stays ``eligible``
        with no releases.

        Raises:
            VersionParseError: the plugin or host version is malformed.
            RegistryUnavailable: the registry could not be reached.
        """
        version = parse_version(plugin.version)
        host = parse_version(host_version)
        table = self.plugin_breakpoints.get(plugin.package_name, NO_BREAKPOINTS)
        rule = table.classify(version)

        if rule is not None:
            status = UpdateStatus.BREAKPOINT
            to_version = rule.target
        else:
            status = UpdateStatus.ELIGIBLE
            to_version = self.registry.latest_compatible(plugin.package_name, host, version.stability)

        if rule is None and to_version is None:
            logger.info("No release of %s is compatible with host %s", plugin.package_name, host.raw)
            releases = []
        else:
            releases = self.builder.build(plugin.package_name, version, to_version)

        info = UpdateInfo(
            status=status,
            releases=releases,
            package_name=plugin.package_name if include_package_name else None,
        )
        info = _apply_license(info, license_state)
        self._log_resolution(plugin.package_name, version.raw, info)
        return info

    def _log_resolution(self, package: str, installed: str, info: UpdateInfo) -> None:
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved update status",
                extra=extra_context(
                    event="decision",
                    component="resolver",
                    action="resolve",
                    package=package,
                    installed=installed,
                    outcome=info.status.value,
                    count=len(info.releases),
                ),
            )
