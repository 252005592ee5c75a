"""Centralized logging helpers shared by the CLI, registries and resolver.

Provides:
 - configure_logging(): idempotent root logger setup driven by UPGATE_LOG_LEVEL
 - extra_context(): builds the structured ``extra=`` payload for log records
 - is_debug_enabled(): cheap guard around verbose DEBUG traces
 - Timer: context manager measuring elapsed milliseconds
 - safe_url()/redact(): keep credentials and tokens out of log output
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = ("token", "access_token", "key", "api_key", "secret", "password", "auth")
_TOKEN_PATTERN = re.compile(r"(gh[pousr]_[A-Za-z0-9]{16,}|Bearer\s+[A-Za-z0-9\-._~+/]+=*)")
_HANDLER_FLAG = "_added_by_upgate"


def configure_logging(log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    The level is read from the UPGATE_LOG_LEVEL environment variable (INFO by
    default). Handlers installed by a previous call are replaced so repeated
    calls (common in tests) do not duplicate output.

    Args:
        log_file: Optional path of a file to receive a copy of the log output.
    """
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            root.removeHandler(handler)
            handler.close()

    stream = logging.StreamHandler()
    stream.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    setattr(stream, _HANDLER_FLAG, True)
    root.addHandler(stream)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        setattr(file_handler, _HANDLER_FLAG, True)
        root.addHandler(file_handler)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Return a dict suitable for the ``extra=`` argument of logging calls.

    ``None`` values are dropped so records only carry meaningful fields.
    """
    return {key: value for key, value in fields.items() if value is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def redact(text: Any) -> str:
    """Mask token-like substrings in ``text``."""
    return _TOKEN_PATTERN.sub("[REDACTED]", str(text))


def safe_url(url: str) -> str:
    """Strip userinfo and mask sensitive query values from a URL for logging."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.netloc.rsplit("@", 1)[-1]
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    masked = [
        (k, "[REDACTED]" if k.lower() in _SENSITIVE_QUERY_KEYS else v)
        for k, v in query
    ]
    return urllib.parse.urlunsplit(
        (parts.scheme, netloc, parts.path, urllib.parse.urlencode(masked), parts.fragment)
    )


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; reads the running clock while still inside the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 2)
