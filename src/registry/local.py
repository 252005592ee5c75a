"""Registry backed by an in-memory mapping or a YAML/JSON file.

File layout::

    host_package: craftcms/cms        # optional
    packages:
      vendor/plugin:
        versions: ["1.2.0", "1.2.1", "1.3.0"]
        changelog: |
          ## 1.3.0 - 2020-02-01
          ...
        requires:
          "1.3.0": {craftcms/cms: "^3.2"}

``changelog`` is either one text shared by every version or a mapping of
version to text. Quote version strings in YAML; an unquoted 1.10 is read as the float 1.1.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import yaml

from constants import Constants
from errors import ChangelogUnavailable
from versioning.models import Version
from versioning.parser import VersionLike, is_valid_version, parse_version
from .base import Registry, Requirements

logger = logging.getLogger(__name__)


class LocalRegistry(Registry):
    """Registry answering from static package data."""

    def __init__(self, packages: Dict[str, Dict[str, Any]], host_package: str = Constants.CORE_PACKAGE):
        super().__init__(host_package)
        self._packages = packages

    @property
    def name(self) -> str:
        return "local"

    @classmethod
    def from_file(cls, path: str) -> "LocalRegistry":
        """Load package data from a YAML or JSON file.

        Raises:
            OSError: the file cannot be read.
            ValueError: the file does not contain a ``packages`` mapping.
        """
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
        if not isinstance(data, dict) or not isinstance(data.get("packages"), dict):
            raise ValueError(f"{os.path.basename(path)}: expected a 'packages' mapping")
        logger.info("Loaded %d package(s) from %s", len(data["packages"]), path)
        return cls(data["packages"], host_package=data.get("host_package", Constants.CORE_PACKAGE))

    def _package(self, package: str) -> Dict[str, Any]:
        return self._packages.get(package) or {}

    def list_versions(self, package: str) -> List[Version]:
        return [parse_version(str(raw)) for raw in self._package(package).get("versions", [])]

    def requirements(self, package: str) -> List[Tuple[Version, Requirements]]:
        requires = {
            parse_version(str(raw)).normalized: reqs or {}
            for raw, reqs in (self._package(package).get("requires") or {}).items()
        }
        return [(version, requires.get(version.normalized, {})) for version in self.list_versions(package)]

    def changelog_for(self, package: str, version: VersionLike) -> Optional[str]:
        changelog = self._package(package).get("changelog")
        if changelog is None or isinstance(changelog, str):
            return changelog
        if not isinstance(changelog, dict):
            raise ChangelogUnavailable(f"Changelog for {package} must be text or a version mapping")
        wanted = parse_version(version)
        for raw, text in changelog.items():
            if not is_valid_version(str(raw)) or parse_version(str(raw)) != wanted:
                continue
            if text is not None and not isinstance(text, str):
                raise ChangelogUnavailable(f"Changelog for {package} {wanted.raw} is not text")
            return text
        return None
