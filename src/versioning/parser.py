"""Version string parsing, normalization and comparison.

Accepted grammar (case-insensitive)::

    [v]MAJOR[.MINOR[.PATCH[.BUILD]]][[-_.]SUFFIX[[.-]N]][+METADATA]

where SUFFIX is one of stable, rc, beta/b, alpha/a, patch/pl/p or dev.
Build metadata after ``+`` is ignored, as Composer does.
Normalized forms follow Composer conventions: four numeric segments plus an
optional stability suffix, e.g. ``3.0.0.0-alpha1`` or ``2.1.0.0-RC2``.
Ordering is delegated to :mod:`packaging.version`.
"""

import re
from typing import Union

from packaging.version import InvalidVersion, Version as _OrdinalVersion

from errors import VersionParseError
from .models import StabilityTier, Version

_VERSION_RE = re.compile(
    r"^v?(?P<release>\d+(?:\.\d+){0,3})"
    r"(?:[-_.]?(?P<suffix>stable|rc|beta|b|alpha|a|patch|pl|p|dev)(?:[.-]?(?P<number>\d+))?)?$",
    re.IGNORECASE,
)

_BUILD_METADATA_RE = re.compile(r"\+[0-9A-Za-z.-]+$")

_SUFFIX_ALIASES = {
    "a": "alpha",
    "b": "beta",
    "pl": "patch",
    "p": "patch",
}

_SUFFIX_STABILITY = {
    "stable": StabilityTier.STABLE,
    "patch": StabilityTier.STABLE,
    "rc": StabilityTier.RC,
    "beta": StabilityTier.BETA,
    "alpha": StabilityTier.ALPHA,
    "dev": StabilityTier.DEV,
}

# Composer spelling in normalized keys, PEP 440 spelling for ordering
_NORMALIZED_LABEL = {"rc": "RC", "beta": "beta", "alpha": "alpha", "patch": "patch", "dev": "dev"}
_ORDINAL_LABEL = {"rc": "rc", "beta": "b", "alpha": "a", "patch": ".post", "dev": ".dev"}

VersionLike = Union[str, Version]


def parse_version(raw: VersionLike) -> Version:
    """Parse ``raw`` into a :class:`Version`.

    Args:
        raw: Version string such as ``1.2``, ``v3.0.41.1`` or ``2.0.0-beta.1``.
            An existing Version is returned unchanged.

    Returns:
        Version: the parsed value.

    Raises:
        VersionParseError: ``raw`` is empty, not a string, or does not match
            the accepted grammar.
    """
    if isinstance(raw, Version):
        return raw
    if not isinstance(raw, str):
        raise VersionParseError(raw, "expected a string")
    text = raw.strip()
    if not text:
        raise VersionParseError(raw, "empty")

    match = _VERSION_RE.match(_BUILD_METADATA_RE.sub("", text))
    if not match:
        raise VersionParseError(raw)

    segments = [int(part) for part in match.group("release").split(".")]
    segments += [0] * (4 - len(segments))
    base = ".".join(str(part) for part in segments)

    suffix = (match.group("suffix") or "stable").lower()
    suffix = _SUFFIX_ALIASES.get(suffix, suffix)
    number = int(match.group("number") or 0)
    if suffix == "stable" and match.group("number"):
        raise VersionParseError(raw, "stable releases take no number")

    if suffix == "stable":
        normalized = base
        ordinal_text = base
    else:
        # A zero counter is dropped so "RC" and "RC0" share one key
        counter = str(number) if number else ""
        normalized = f"{base}-{_NORMALIZED_LABEL[suffix]}{counter}"
        ordinal_text = f"{base}{_ORDINAL_LABEL[suffix]}{number}"

    try:
        ordinal = _OrdinalVersion(ordinal_text)
    except InvalidVersion as exc:  # pragma: no cover - the regex keeps this unreachable
        raise VersionParseError(raw, str(exc)) from exc

    return Version(
        normalized=normalized,
        raw=text,
        stability=_SUFFIX_STABILITY[suffix],
        ordinal=ordinal,
    )


def normalize_version(raw: VersionLike) -> str:
    """Return the canonical key for ``raw``."""
    return parse_version(raw).normalized


def parse_stability(raw: VersionLike) -> StabilityTier:
    """Return the stability tier of ``raw``."""
    return parse_version(raw).stability


def compare_versions(a: VersionLike, b: VersionLike) -> int:
    """Compare two versions.

    Returns:
        -1 if a < b, 0 if a == b, 1 if a > b
    """
    left, right = parse_version(a), parse_version(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def is_valid_version(raw: object) -> bool:
    """Return True if ``raw`` parses as a version."""
    try:
        parse_version(raw)  # type: ignore[arg-type]
    except VersionParseError:
        return False
    return True
