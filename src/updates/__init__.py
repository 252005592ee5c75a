"""Update resolution engine: breakpoints, release lists and status resolution."""

from .models import (
    ComponentOutcome,
    InstalledPlugin,
    LicenseState,
    Release,
    UpdateInfo,
    UpdatesReport,
    UpdatesRequest,
    UpdateStatus,
)
from .breakpoints import CORE_BREAKPOINTS, BreakpointRule, BreakpointTable, make_rule
from .releases import ReleaseListBuilder, merge_changelog
from .resolver import UpdateStatusResolver, should_include_package_name
from .service import UpdateService

__all__ = [
    "ComponentOutcome",
    "InstalledPlugin",
    "LicenseState",
    "Release",
    "UpdateInfo",
    "UpdatesReport",
    "UpdatesRequest",
    "UpdateStatus",
    "CORE_BREAKPOINTS",
    "BreakpointRule",
    "BreakpointTable",
    "make_rule",
    "ReleaseListBuilder",
    "merge_changelog",
    "UpdateStatusResolver",
    "should_include_package_name",
    "UpdateService",
]
