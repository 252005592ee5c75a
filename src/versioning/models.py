"""Data models for versions and stability tiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from functools import total_ordering

from packaging.version import Version as _OrdinalVersion


class StabilityTier(IntEnum):
    """Release maturity, ordered from least to most stable."""
    DEV = 0
    ALPHA = 1
    BETA = 2
    RC = 3
    STABLE = 4

    @property
    def label(self) -> str:
        """Lower-case name as used in Composer stability flags."""
        return self.name.lower()

    def accepts(self, other: "StabilityTier") -> bool:
        """Return True if a candidate of tier ``other`` passes this minimum.

        A ``dev`` minimum accepts everything.
        """
        return self is StabilityTier.DEV or other >= self


@total_ordering
@dataclass(frozen=True)
class Version:
    """Immutable, comparable version value.

    Equality and hashing use ``normalized`` only, so ``1.0`` and ``1.0.0`` are
    the same Version. ``raw`` keeps the original spelling for display.
    Instances are built by :func:`versioning.parser.parse_version`.
    """
    normalized: str
    raw: str = field(compare=False)
    stability: StabilityTier = field(compare=False)
    ordinal: _OrdinalVersion = field(compare=False, repr=False)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __str__(self) -> str:
        return self.raw

    @property
    def is_stable(self) -> bool:
        """True when the version carries no pre-release or dev suffix."""
        return self.stability is StabilityTier.STABLE
