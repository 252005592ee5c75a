"""Breakpoint rules: version intervals that force an intermediate upgrade target.

Rules are data, not control flow. A table sorts its rules narrowest interval
first (unbounded intervals last, declaration order breaking ties) and
``classify`` returns the first rule whose interval contains the installed
version.

Intervals use bracket notation: ``[`` / ``]`` are inclusive, ``(`` / ``)``
exclusive, and an empty side is unbounded, e.g. ``[3.1.20,3.1.34)`` or
``(3.0.0-alpha.1,3.0.41.1)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import zip_longest
from typing import Any, Dict, Iterable, List, Optional, Tuple

from versioning.models import Version
from versioning.parser import VersionLike, parse_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreakpointRule:
    """Interval of installed versions that must upgrade to ``target`` first."""
    lower: Optional[Version]
    upper: Optional[Version]
    target: Version
    lower_inclusive: bool = True
    upper_inclusive: bool = False
    reason: str = ""

    def contains(self, version: Version) -> bool:
        """Return True if ``version`` lies inside this rule's interval."""
        if self.lower is not None:
            if self.lower_inclusive and version < self.lower:
                return False
            if not self.lower_inclusive and version <= self.lower:
                return False
        if self.upper is not None:
            if self.upper_inclusive and version > self.upper:
                return False
            if not self.upper_inclusive and version >= self.upper:
                return False
        return True

    @property
    def interval(self) -> str:
        """Bracket notation of the interval."""
        left = "[" if self.lower_inclusive else "("
        right = "]" if self.upper_inclusive else ")"
        lower = self.lower.raw if self.lower is not None else ""
        upper = self.upper.raw if self.upper is not None else ""
        return f"{left}{lower},{upper}{right}"

    def span(self) -> Tuple:
        """Sort key approximating interval width; unbounded sorts last."""
        if self.lower is None or self.upper is None:
            return (1,)
        diff = tuple(
            u - l for u, l in zip_longest(self.upper.ordinal.release, self.lower.ordinal.release, fillvalue=0)
        )
        return (0,) + diff


def parse_interval(text: str) -> Tuple[Optional[Version], Optional[Version], bool, bool]:
    """Parse bracket interval notation.

    Returns:
        Tuple of (lower, upper, lower_inclusive, upper_inclusive)

    Raises:
        ValueError: malformed interval, or lower bound above upper bound.
    """
    notation = (text or "").strip()
    if len(notation) < 3 or notation[0] not in "[(" or notation[-1] not in "])" or "," not in notation:
        raise ValueError(f"Invalid breakpoint interval: {text!r}")
    lower_str, upper_str = (part.strip() for part in notation[1:-1].split(",", 1))
    lower = parse_version(lower_str) if lower_str else None
    upper = parse_version(upper_str) if upper_str else None
    if lower is not None and upper is not None and lower > upper:
        raise ValueError(f"Breakpoint interval lower bound above upper bound: {text!r}")
    return lower, upper, notation[0] == "[", notation[-1] == "]"


def make_rule(interval: str, target: VersionLike, reason: str = "") -> BreakpointRule:
    """Build a rule from bracket notation and a target version."""
    lower, upper, lower_inclusive, upper_inclusive = parse_interval(interval)
    return BreakpointRule(
        lower=lower,
        upper=upper,
        target=parse_version(target),
        lower_inclusive=lower_inclusive,
        upper_inclusive=upper_inclusive,
        reason=reason,
    )


class BreakpointTable:
    """Prioritised collection of breakpoint rules."""

    def __init__(self, rules: Iterable[BreakpointRule] = ()):
        # sorted() is stable, so equal spans keep declaration order
        self._rules: List[BreakpointRule] = sorted(rules, key=lambda rule: rule.span())

    @property
    def rules(self) -> List[BreakpointRule]:
        """Rules in evaluation order."""
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def classify(self, installed: VersionLike) -> Optional[BreakpointRule]:
        """Return the first rule containing ``installed``, or None."""
        version = parse_version(installed)
        for rule in self._rules:
            if rule.contains(version):
                logger.debug(
                    "Version %s matched breakpoint %s -> %s",
                    version.raw, rule.interval, rule.target.raw,
                )
                return rule
        return None

    @classmethod
    def from_config(cls, entries: Iterable[Dict[str, Any]]) -> "BreakpointTable":
        """Build a table from config entries of the form
        ``{"range": "[3.1.20,3.1.34)", "target": "3.1.34", "reason": "..."}``.

        Raises:
            ValueError: an entry is missing ``range`` or ``target`` or is malformed.
        """
        rules = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or "range" not in entry or "target" not in entry:
                raise ValueError(f"Breakpoint entry #{index} needs 'range' and 'target'")
            rules.append(make_rule(str(entry["range"]), str(entry["target"]), str(entry.get("reason", ""))))
        return cls(rules)


CORE_BREAKPOINTS = BreakpointTable([
    make_rule("(3.0.0-alpha.1,3.0.41.1)", "3.0.41.1", "3.0.41.1 is a breakpoint for 3.0 releases"),
    make_rule(
        "[3.1.20,3.1.34)", "3.1.34",
        "3.1.34 is a breakpoint for 3.1.20+ releases, where project-config/rebuild was added",
    ),
])

NO_BREAKPOINTS = BreakpointTable()
