"""Data models for update resolution requests and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from constants import Constants
from errors import UpdateResolutionError


class UpdateStatus(Enum):
    """Mutually exclusive outcome for one component."""
    ELIGIBLE = "eligible"
    BREAKPOINT = "breakpoint"
    EXPIRED = "expired"


@dataclass
class Release:
    """One candidate version, optionally enriched with changelog metadata."""
    version: str
    key: str
    critical: Optional[bool] = None
    date: Optional[str] = None
    notes: Optional[str] = None

    @property
    def has_metadata(self) -> bool:
        return self.critical is not None or self.date is not None or self.notes is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting metadata fields that were never filled."""
        data: Dict[str, Any] = {"version": self.version}
        for name in ("critical", "date", "notes"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class LicenseState:
    """License information supplied by the license store for one component."""
    expired: bool
    renewal_url: Optional[str] = None
    renewal_price: Optional[Union[Decimal, float, int]] = None
    renewal_currency: str = Constants.RENEWAL_CURRENCY

    def __post_init__(self):
        if self.expired and (not self.renewal_url or self.renewal_price is None or not self.renewal_currency):
            raise ValueError("An expired license needs a renewal URL, price and currency")


@dataclass
class UpdateInfo:
    """Resolved update information for one component."""
    status: UpdateStatus
    releases: List[Release] = field(default_factory=list)
    renewal_url: Optional[str] = None
    renewal_price: Optional[Union[Decimal, float, int]] = None
    renewal_currency: Optional[str] = None
    package_name: Optional[str] = None

    def __post_init__(self):
        renewal = (self.renewal_url, self.renewal_price, self.renewal_currency)
        if self.status is UpdateStatus.EXPIRED:
            if any(value is None for value in renewal):
                raise ValueError("Expired status requires all renewal fields")
        elif any(value is not None for value in renewal):
            raise ValueError(f"Renewal fields are only valid for expired status, not {self.status.value}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status.value,
            "releases": [release.to_dict() for release in self.releases],
        }
        if self.status is UpdateStatus.EXPIRED:
            price = self.renewal_price
            data["renewalUrl"] = self.renewal_url
            data["renewalPrice"] = float(price) if isinstance(price, Decimal) else price
            data["renewalCurrency"] = self.renewal_currency
        if self.package_name is not None:
            data["packageName"] = self.package_name
        return data


@dataclass(frozen=True)
class InstalledPlugin:
    """A plugin as reported by the caller: its registry package and version."""
    package_name: str
    version: str


@dataclass
class UpdatesRequest:
    """Everything the caller knows about the installation.

    ``plugins`` order is preserved in the report.
    ``include_package_name`` left as None applies the core-version rule.
    """
    core_version: Optional[str]
    plugins: Dict[str, InstalledPlugin] = field(default_factory=dict)
    core_license: Optional[LicenseState] = None
    plugin_licenses: Dict[str, LicenseState] = field(default_factory=dict)
    include_package_name: Optional[bool] = None


@dataclass
class ComponentOutcome:
    """Per-plugin result: exactly one of ``info`` or ``error`` is set."""
    handle: str
    info: Optional[UpdateInfo] = None
    error: Optional[UpdateResolutionError] = None

    def __post_init__(self):
        if (self.info is None) == (self.error is None):
            raise ValueError("ComponentOutcome needs exactly one of info or error")

    @property
    def ok(self) -> bool:
        return self.info is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.info is not None:
            return self.info.to_dict()
        return {"error": {"kind": self.error.kind, "message": str(self.error)}}


@dataclass
class UpdatesReport:
    """Aggregate response: core info plus per-plugin outcomes in request order."""
    core: UpdateInfo
    plugins: Dict[str, ComponentOutcome] = field(default_factory=dict)

    @property
    def failed_plugins(self) -> List[str]:
        return [handle for handle, outcome in self.plugins.items() if not outcome.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cms": self.core.to_dict(),
            "plugins": {handle: outcome.to_dict() for handle, outcome in self.plugins.items()},
        }
