"""upgate - update availability, breakpoint and license status resolver.

Reads an installation request (core version, plugins, licenses), resolves
update information for each component against a package registry and writes
a JSON report. The process exit code is one of ``constants.ExitCodes``.
"""
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import yaml

from args import parse_args
from cli_config import ConfigError, apply_config, core_breakpoints, load_config, plugin_breakpoints
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import MissingInstalledVersion, RegistryUnavailable, VersionParseError
from registry.base import Registry
from registry.composer import ComposerRegistry
from registry.local import LocalRegistry
from updates.models import InstalledPlugin, LicenseState, UpdatesReport, UpdatesRequest
from updates.resolver import UpdateStatusResolver
from updates.service import UpdateService

logger = logging.getLogger(__name__)


def load_request_file(file_name: str) -> Dict[str, Any]:
    """Loads the installation request from a YAML or JSON file.

    Raises:
        OSError: the file cannot be read.
        ValueError: the file is not a mapping or cannot be parsed.
    """
    with open(file_name, "r", encoding="utf-8") as fh:
        if file_name.lower().endswith(".json"):
            data = json.load(fh)
        else:
            try:
                data = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise ValueError(str(exc)) from exc
    if not isinstance(data, dict):
        raise ValueError(f"{file_name} must contain a mapping")
    return data


def _license(data: Optional[Dict[str, Any]]) -> Optional[LicenseState]:
    if not data:
        return None
    return LicenseState(
        expired=bool(data.get("expired", False)),
        renewal_url=data.get("renewal_url"),
        renewal_price=data.get("renewal_price"),
        renewal_currency=data.get("renewal_currency", Constants.RENEWAL_CURRENCY),
    )


def build_request(data: Dict[str, Any], include_package_name: Optional[bool] = None) -> UpdatesRequest:
    """Convert request file contents into an UpdatesRequest.

    Plugin order follows the file. ``include_package_name`` from the CLI wins
    over the file's ``include_package_name`` key.

    Raises:
        ValueError: a plugin entry lacks ``package`` or ``version``, or a
            license is incomplete.
    """
    cms = data.get("cms") or {}
    plugins: Dict[str, InstalledPlugin] = {}
    plugin_licenses: Dict[str, LicenseState] = {}
    for handle, entry in (data.get("plugins") or {}).items():
        if not isinstance(entry, dict) or not entry.get("package") or not entry.get("version"):
            raise ValueError(f"Plugin {handle!r} needs 'package' and 'version'")
        plugins[str(handle)] = InstalledPlugin(package_name=str(entry["package"]), version=str(entry["version"]))
        plugin_license = _license(entry.get("license"))
        if plugin_license is not None:
            plugin_licenses[str(handle)] = plugin_license

    if include_package_name is None:
        include_package_name = data.get("include_package_name")

    core_version = cms.get("version")
    return UpdatesRequest(
        core_version=str(core_version) if core_version is not None else None,
        plugins=plugins,
        core_license=_license(cms.get("license")),
        plugin_licenses=plugin_licenses,
        include_package_name=include_package_name,
    )


def build_registry(args) -> Registry:
    """Select the registry implementation from CLI arguments."""
    if getattr(args, "REGISTRY_FILE", None):
        return LocalRegistry.from_file(args.REGISTRY_FILE)
    return ComposerRegistry(base_url=getattr(args, "REGISTRY_URL", None), host_package=Constants.CORE_PACKAGE)


def export_json(report: UpdatesReport, path: Optional[str]) -> None:
    """Writes the report as JSON to ``path`` or stdout."""
    payload = json.dumps(report.to_dict(), indent=2)
    if not path:
        sys.stdout.write(payload + "\n")
        return
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(payload + "\n")
    logging.info("JSON report has been successfully exported at: %s", path)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging(getattr(args, "LOG_FILE", None))

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    try:
        cfg = load_config(getattr(args, "CONFIG", None))
        apply_config(cfg)
        resolver_breakpoints = core_breakpoints(cfg)
        per_plugin_breakpoints = plugin_breakpoints(cfg)
        request = build_request(load_request_file(args.REQUEST), args.INCLUDE_PACKAGE_NAME)
        registry = build_registry(args)
    except (ConfigError, OSError, ValueError) as exc:
        logging.error("%s, aborting", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)

    resolver = UpdateStatusResolver(
        registry,
        core_package=Constants.CORE_PACKAGE,
        core_breakpoints=resolver_breakpoints,
        plugin_breakpoints=per_plugin_breakpoints,
    )
    service = UpdateService(resolver)

    try:
        report = service.get_updates(request)
    except (MissingInstalledVersion, VersionParseError) as exc:
        logging.error("Bad request: %s", exc)
        sys.exit(ExitCodes.BAD_REQUEST.value)
    except RegistryUnavailable as exc:
        logging.error("Registry unavailable: %s", exc)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)

    try:
        export_json(report, getattr(args, "OUTPUT", None))
    except OSError as exc:
        logging.error("JSON report couldn't be written to disk: %s", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
