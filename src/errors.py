"""Exception types raised during update resolution."""

from __future__ import annotations

from typing import Optional


class UpdateResolutionError(Exception):
    """Base class for failures that prevent a component from being resolved."""

    kind = "resolution_error"


class VersionParseError(UpdateResolutionError, ValueError):
    """Raised when a version string is empty or syntactically invalid."""

    kind = "version_parse_error"

    def __init__(self, raw: object, reason: Optional[str] = None):
        self.raw = raw
        message = f"Malformed version string: {raw!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RegistryUnavailable(UpdateResolutionError):
    """Raised when a registry call fails or times out."""

    kind = "registry_unavailable"


class ChangelogUnavailable(UpdateResolutionError):
    """Raised by collaborators when a changelog cannot be fetched or parsed.

    The release list builder treats this as "no changelog" rather than a failure.
    """

    kind = "changelog_unavailable"


class MissingInstalledVersion(UpdateResolutionError):
    """Raised when the caller did not supply the core application's version."""

    kind = "missing_installed_version"
