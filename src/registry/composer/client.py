"""Composer registry client backed by Packagist v2 metadata.

Version lists and requirements come from ``<base_url><vendor>/<name>.json``.
Changelogs are read from ``CHANGELOG.md`` at the release's GitHub source
reference, since Packagist does not host release notes itself.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from constants import Constants
from errors import RegistryUnavailable, VersionParseError
from common.http_client import get_json, robust_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.cache import TTLCache
from versioning.models import Version
from versioning.parser import VersionLike, parse_version
from ..base import Registry, Requirements

logger = logging.getLogger(__name__)

_GITHUB_SOURCE_RE = re.compile(r"github\.com[/:](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")
_UNSET = "__unset"


def expand_minified(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Expand Composer v2 minified metadata.

    Each entry only lists keys that differ from the previous one; ``__unset``
    removes an inherited key.
    """
    expanded: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    for entry in entries:
        if current is None:
            current = dict(entry)
        else:
            current = dict(current)
            for key, value in entry.items():
                if value == _UNSET:
                    current.pop(key, None)
                else:
                    current[key] = value
        expanded.append(current)
    return expanded


def github_raw_url(source: Dict[str, Any], filename: str = Constants.CHANGELOG_FILE) -> Optional[str]:
    """Build the raw.githubusercontent.com URL for ``filename`` at a source reference."""
    url = source.get("url") if isinstance(source, dict) else None
    reference = source.get("reference") if isinstance(source, dict) else None
    if not isinstance(url, str) or not isinstance(reference, str) or not reference:
        return None
    match = _GITHUB_SOURCE_RE.search(url.strip())
    if not match:
        return None
    return f"{Constants.RAW_GITHUB_BASE}/{match.group('owner')}/{match.group('repo')}/{reference}/{filename}"


class ComposerRegistry(Registry):
    """Registry reading Packagist (or a compatible Composer v2 repository)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        host_package: str = Constants.CORE_PACKAGE,
        cache: Optional[TTLCache] = None,
        github_token: Optional[str] = None,
    ):
        super().__init__(host_package)
        self.base_url = (base_url or Constants.REGISTRY_URL_PACKAGIST).rstrip("/") + "/"
        self.cache = cache if cache is not None else TTLCache(default_ttl=Constants.METADATA_CACHE_TTL_SEC)
        self._github_token = github_token if github_token is not None else os.environ.get(Constants.ENV_GITHUB_TOKEN)

    @property
    def name(self) -> str:
        return "composer"

    def _metadata(self, package: str) -> List[Dict[str, Any]]:
        """Return expanded release entries for ``package``; [] if the package is unknown.

        Raises:
            RegistryUnavailable: transport failure or an unreadable 200 response.
        """
        cache_key = f"composer:{package}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"{self.base_url}{package}.json"
        status_code, _, data = get_json(url, headers={"Accept": "application/json"})

        if status_code == 404:
            logger.warning(
                "Package not found in registry",
                extra=extra_context(
                    event="http_response",
                    component="composer",
                    outcome="not_found",
                    status_code=404,
                    target=safe_url(url),
                    package=package,
                ),
            )
            entries: List[Dict[str, Any]] = []
        elif status_code != 200 or not isinstance(data, dict):
            raise RegistryUnavailable(f"Unexpected registry response for {package} (HTTP {status_code})")
        else:
            raw_entries = (data.get("packages") or {}).get(package) or []
            if not isinstance(raw_entries, list):
                raise RegistryUnavailable(f"Malformed registry metadata for {package}")
            entries = expand_minified(raw_entries) if data.get("minified") else raw_entries

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched package metadata",
                extra=extra_context(
                    event="fetch",
                    component="composer",
                    action="metadata",
                    package=package,
                    count=len(entries),
                ),
            )
        self.cache.set(cache_key, entries)
        return entries

    def _releases(self, package: str) -> List[Tuple[Version, Dict[str, Any]]]:
        """Pair parsed versions with their entries, skipping branch aliases like ``dev-main``."""
        releases = []
        for entry in self._metadata(package):
            raw = entry.get("version")
            try:
                releases.append((parse_version(raw), entry))
            except VersionParseError:
                logger.debug("Skipping non-release version %r of %s", raw, package)
        return releases

    def list_versions(self, package: str) -> List[Version]:
        return [version for version, _ in self._releases(package)]

    def requirements(self, package: str) -> List[Tuple[Version, Requirements]]:
        pairs = []
        for version, entry in self._releases(package):
            requires = entry.get("require")
            pairs.append((version, requires if isinstance(requires, dict) else {}))
        return pairs

    def changelog_for(self, package: str, version: VersionLike) -> Optional[str]:
        wanted = parse_version(version)
        entry = next((e for v, e in self._releases(package) if v == wanted), None)
        if entry is None:
            logger.debug("No registry entry for %s %s", package, wanted.raw)
            return None

        url = github_raw_url(entry.get("source") or {})
        if url is None:
            logger.debug("No GitHub source for %s %s; changelog unavailable", package, wanted.raw)
            return None

        headers = {"Authorization": f"token {self._github_token}"} if self._github_token else None
        status_code, _, text = robust_get(url, headers=headers)
        if status_code != 200:
            logger.info("No changelog for %s %s (HTTP %s)", package, wanted.raw, status_code)
            return None
        return text or None
