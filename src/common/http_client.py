"""Shared HTTP helpers used by registry clients.

Encapsulates request/timeout/retry handling so registry modules avoid
duplicating try/except blocks. Transport failures surface as
RegistryUnavailable; callers decide what a 404 means for them.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from errors import RegistryUnavailable
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


# Simple in-memory cache for HTTP responses
_http_cache: Dict[str, Tuple[Any, float]] = {}
_http_cache_lock = threading.Lock()


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


def _is_cache_valid(cache_entry: Tuple[Any, float]) -> bool:
    """Check if cache entry is still valid."""
    _, cached_time = cache_entry
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def clear_cache() -> None:
    """Drop every cached HTTP response."""
    with _http_cache_lock:
        _http_cache.clear()


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout, retries, and caching with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, body_text)

    Raises:
        RegistryUnavailable: every attempt timed out, failed to connect, or
            returned a 5xx status.
    """
    cache_key = _get_cache_key('GET', url, headers)
    safe_target = safe_url(url)

    with _http_cache_lock:
        cached = _http_cache.get(cache_key)
    if cached is not None and _is_cache_valid(cached):
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit",
                    component="http_client",
                    action="GET",
                    target=safe_target
                )
            )
        return cached[0]

    request_headers = {"User-Agent": Constants.USER_AGENT}
    if headers:
        request_headers.update(headers)

    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=request_headers,
                    **kwargs
                )
            except requests.Timeout:
                last_exception = "timeout"
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="GET",
                        outcome="timeout",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="GET",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
                continue

        if response.status_code >= 500:
            last_exception = f"HTTP {response.status_code}"
            logger.debug(
                "HTTP server error",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="server_error",
                    status_code=response.status_code,
                    attempt=attempt + 1,
                    target=safe_target
                )
            )
            continue

        result = (response.status_code, dict(response.headers), response.text)
        with _http_cache_lock:
            _http_cache[cache_key] = (result, time.time())

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response ok",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target
                )
            )
        return result

    logger.warning(
        "GET %s failed after %s attempts: %s",
        safe_target,
        Constants.HTTP_RETRY_MAX,
        last_exception,
    )
    raise RegistryUnavailable(
        f"Request to {safe_target} failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"
    )


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, headers=headers, **kwargs)

    if status_code == 200 and text:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Couldn't decode JSON from %s", safe_url(url))
            return status_code, response_headers, None
        if is_debug_enabled(logger):
            logger.debug(
                "Parsed JSON response",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="success",
                    status_code=status_code,
                    target=safe_url(url)
                )
            )
        return status_code, response_headers, parsed

    return status_code, response_headers, None
