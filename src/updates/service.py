"""Aggregate update resolution for a whole installation.

The core application is resolved first; any failure there aborts the request.
Plugins are then resolved concurrently, one task per plugin, and the report
lists them in the caller's order whatever order the tasks finish in. A plugin
failure (including a timeout) becomes that plugin's error outcome.
"""

from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import Dict, Optional

from constants import Constants
from common.logging_utils import Timer, extra_context, is_debug_enabled
from errors import MissingInstalledVersion, RegistryUnavailable, UpdateResolutionError
from .models import ComponentOutcome, UpdateInfo, UpdatesReport, UpdatesRequest
from .resolver import UpdateStatusResolver, should_include_package_name

logger = logging.getLogger(__name__)


class UpdateService:
    """Entry point used by callers such as the CLI or an HTTP layer."""

    def __init__(
        self,
        resolver: UpdateStatusResolver,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.resolver = resolver
        self.max_workers = max_workers or Constants.MAX_CONCURRENCY
        self.timeout = timeout if timeout is not None else Constants.RESOLUTION_TIMEOUT_SEC

    def get_updates(self, request: UpdatesRequest) -> UpdatesReport:
        """Resolve the core application and every installed plugin.

        Raises:
            MissingInstalledVersion: ``request.core_version`` is empty.
            VersionParseError: the core version is malformed.
            RegistryUnavailable: the core application could not be resolved.
        """
        if not request.core_version or not str(request.core_version).strip():
            raise MissingInstalledVersion("Unable to determine the current core version.")

        include = request.include_package_name
        if include is None:
            include = should_include_package_name(request.core_version)

        with Timer() as timer:
            core = self.resolver.resolve_core(request.core_version, request.core_license, include)
            plugins = self._resolve_plugins(request, include)

        failed = [handle for handle, outcome in plugins.items() if not outcome.ok]
        if failed:
            logger.warning("Could not resolve %d plugin(s): %s", len(failed), ", ".join(failed))
        logger.info(
            "Resolved updates for core %s and %d plugin(s) in %.0f ms",
            request.core_version, len(plugins), timer.duration_ms(),
        )
        return UpdatesReport(core=core, plugins=plugins)

    def _resolve_one(self, handle: str, request: UpdatesRequest, include: bool) -> UpdateInfo:
        return self.resolver.resolve_plugin(
            request.plugins[handle],
            request.core_version,
            request.plugin_licenses.get(handle),
            include,
        )

    def _resolve_plugins(self, request: UpdatesRequest, include: bool) -> Dict[str, ComponentOutcome]:
        if not request.plugins:
            return {}

        workers = min(self.max_workers, len(request.plugins))
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="upgate")
        try:
            futures = {
                handle: executor.submit(self._resolve_one, handle, request, include)
                for handle in request.plugins
            }
            # One deadline for the whole batch, not one per plugin
            deadline = time.monotonic() + self.timeout
            outcomes: Dict[str, ComponentOutcome] = {}
            for handle, future in futures.items():
                outcomes[handle] = self._collect(handle, future, max(0.0, deadline - time.monotonic()))
            return outcomes
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _collect(self, handle: str, future: concurrent.futures.Future, timeout: float) -> ComponentOutcome:
        try:
            return ComponentOutcome(handle=handle, info=future.result(timeout=timeout))
        except concurrent.futures.TimeoutError:
            logger.error("Resolution of plugin %s timed out after %s seconds", handle, self.timeout)
            future.cancel()
            error = RegistryUnavailable(f"Resolution timed out after {self.timeout} seconds")
        except UpdateResolutionError as exc:
            logger.error("Resolution of plugin %s failed: %s", handle, exc)
            error = exc
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error while resolving plugin %s", handle)
            error = UpdateResolutionError(f"{type(exc).__name__}: {exc}")

        if is_debug_enabled(logger):
            logger.debug(
                "Plugin resolution failed",
                extra=extra_context(
                    event="decision",
                    component="service",
                    action="resolve_plugin",
                    outcome=error.kind,
                    plugin=handle,
                ),
            )
        return ComponentOutcome(handle=handle, error=error)
