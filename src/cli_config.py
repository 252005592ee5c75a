"""Configuration loading for runtime tunables.

Precedence, lowest to highest: Constants defaults, config file (YAML or JSON),
environment variables, CLI flags. Recognised config keys::

    registry:
      url: https://repo.packagist.org/p2/
      cache_ttl: 600
    http:
      timeout: 30
      retries: 3
    resolution:
      max_concurrency: 8
      timeout: 60
    core:
      package: craftcms/cms
    breakpoints:
      - range: "[3.1.20,3.1.34)"
        target: "3.1.34"
        reason: project-config/rebuild was added in 3.1.20
    plugin_breakpoints:
      vendor/plugin:
        - range: "[1.0.0,1.4.0)"
          target: "1.4.0"
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from updates.breakpoints import CORE_BREAKPOINTS, BreakpointTable

logger = logging.getLogger(__name__)

# (section, key) -> (Constants attribute, type)
_TUNABLES = {
    ("registry", "url"): ("REGISTRY_URL_PACKAGIST", str),
    ("registry", "cache_ttl"): ("METADATA_CACHE_TTL_SEC", int),
    ("http", "timeout"): ("REQUEST_TIMEOUT", float),
    ("http", "retries"): ("HTTP_RETRY_MAX", int),
    ("resolution", "max_concurrency"): ("MAX_CONCURRENCY", int),
    ("resolution", "timeout"): ("RESOLUTION_TIMEOUT_SEC", float),
    ("core", "package"): ("CORE_PACKAGE", str),
}


class ConfigError(ValueError):
    """Raised when a configuration file is unreadable or has invalid values."""


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML or JSON configuration file.

    Returns an empty dict when ``path`` is not given.

    Raises:
        ConfigError: the file is missing, unparsable, or not a mapping.
    """
    if not path:
        return {}
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.info("Loaded configuration from %s", path)
    return data


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognised config values onto Constants, then apply environment overrides.

    Raises:
        ConfigError: a value has the wrong type.
    """
    for (section, key), (attr, cast) in _TUNABLES.items():
        block = cfg.get(section)
        if not isinstance(block, dict) or key not in block:
            continue
        try:
            setattr(Constants, attr, cast(block[key]))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {section}.{key}: {block[key]!r}") from exc
        logger.debug("Config override %s.%s -> %s", section, key, attr)

    env_url = os.environ.get(Constants.ENV_REGISTRY_URL)
    if env_url and env_url.strip():
        Constants.REGISTRY_URL_PACKAGIST = env_url.strip()


def core_breakpoints(cfg: Dict[str, Any]) -> BreakpointTable:
    """Return the configured core breakpoint table, or the built-in one.

    Raises:
        ConfigError: the ``breakpoints`` section is malformed.
    """
    entries = cfg.get("breakpoints")
    if entries is None:
        return CORE_BREAKPOINTS
    try:
        return BreakpointTable.from_config(entries)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid breakpoints: {exc}") from exc


def plugin_breakpoints(cfg: Dict[str, Any]) -> Dict[str, BreakpointTable]:
    """Return per-package breakpoint tables from ``plugin_breakpoints``.

    Raises:
        ConfigError: the section is malformed.
    """
    section = cfg.get("plugin_breakpoints") or {}
    if not isinstance(section, dict):
        raise ConfigError("plugin_breakpoints must map package names to rule lists")
    tables = {}
    for package, entries in section.items():
        try:
            tables[str(package)] = BreakpointTable.from_config(entries or [])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid breakpoints for {package}: {exc}") from exc
    return tables
