"""Composer-style version constraint matching.

Supports the subset registries use in ``require`` sections:

- OR groups separated by ``||`` (or a single ``|``)
- AND terms separated by ``,`` or whitespace
- hyphen ranges ``1.0 - 2.0``
- caret ``^1.2.3`` and tilde ``~1.2`` ranges
- wildcards ``*``, ``1.*``, ``1.2.x``
- comparison operators ``>=``, ``>``, ``<=``, ``<``, ``!=``, ``==``/``=``
- bare versions (exact match); stability flags such as ``@dev`` are ignored

Range bounds are expressed against ``-dev`` versions so that, as in Composer,
``^3.0`` accepts ``3.0.0-beta.1`` but not ``4.0.0-alpha.1``.
"""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Callable, List, Tuple

from errors import VersionParseError
from .models import Version
from .parser import VersionLike, parse_version


class ConstraintParseError(ValueError):
    """Raised when a constraint string cannot be understood."""


_OPERATORS: dict = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "!=": operator.ne,
    "<>": operator.ne,
    "==": operator.eq,
    "=": operator.eq,
}

_OP_RE = re.compile(r"^(>=|<=|<>|!=|==|>|<|=)\s*(.+)$")
_HYPHEN_RE = re.compile(r"^\s*(\S+)\s+-\s+(\S+)\s*$")
_WILDCARD_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?\.[x*]$", re.IGNORECASE)
_FLAG_RE = re.compile(r"@(stable|rc|beta|alpha|dev)$", re.IGNORECASE)

Predicate = Tuple[Callable[[Version, Version], bool], Version]


def _dev(*parts: int) -> Version:
    return parse_version(".".join(str(p) for p in parts) + "-dev")


def _numeric_parts(text: str) -> List[int]:
    body = text.lstrip("vV").split("-", 1)[0]
    try:
        return [int(p) for p in body.split(".")]
    except ValueError as exc:
        raise ConstraintParseError(f"Invalid version in constraint: {text!r}") from exc


@dataclass(frozen=True)
class Constraint:
    """Parsed constraint: a disjunction of conjunctions of predicates."""
    raw: str
    alternatives: Tuple[Tuple[Predicate, ...], ...]

    def matches(self, version: VersionLike) -> bool:
        """Return True if ``version`` satisfies this constraint."""
        candidate = parse_version(version)
        return any(
            all(op(candidate, bound) for op, bound in group)
            for group in self.alternatives
        )


def _parse_term(term: str) -> List[Predicate]:
    """Expand a single AND term into predicates."""
    term = _FLAG_RE.sub("", term.strip())
    if not term or term in ("*", "x", "X"):
        return []

    try:
        if term.startswith("^"):
            parts = _numeric_parts(term[1:])
            lower = parse_version(term[1:])
            if parts[0] > 0 or len(parts) == 1:
                upper = _dev(parts[0] + 1)
            elif len(parts) == 2 or parts[1] > 0:
                upper = _dev(0, parts[1] + 1)
            else:
                upper = _dev(0, 0, parts[2] + 1)
            return [(operator.ge, _floor(lower)), (operator.lt, upper)]

        if term.startswith("~") and not term.startswith("~="):
            parts = _numeric_parts(term[1:])
            lower = parse_version(term[1:])
            if len(parts) <= 2:
                upper = _dev(parts[0] + 1)
            else:
                upper = _dev(parts[0], parts[1] + 1)
            return [(operator.ge, _floor(lower)), (operator.lt, upper)]

        wildcard = _WILDCARD_RE.match(term)
        if wildcard:
            parts = [int(p) for p in wildcard.groups() if p is not None]
            upper_parts = parts[:-1] + [parts[-1] + 1]
            return [(operator.ge, _dev(*parts)), (operator.lt, _dev(*upper_parts))]

        op_match = _OP_RE.match(term)
        if op_match:
            return [(_OPERATORS[op_match.group(1)], parse_version(op_match.group(2).strip()))]

        return [(operator.eq, parse_version(term))]
    except VersionParseError as exc:
        raise ConstraintParseError(f"Invalid constraint term {term!r}: {exc}") from exc


def _floor(version: Version) -> Version:
    """Lower bound for caret/tilde ranges: stable bounds start at their dev release."""
    if version.is_stable and "-" not in version.normalized:
        return parse_version(version.normalized + "-dev")
    return version


def _split_and(group: str) -> List[str]:
    # Operators may be separated from their version by spaces: ">= 1.0"
    group = re.sub(r"(>=|<=|<>|!=|==|>|<|=)\s+", r"\1", group.strip())
    return [t for t in re.split(r"\s*,\s*|\s+", group) if t]


def parse_constraint(text: str) -> Constraint:
    """Parse a Composer constraint string.

    Raises:
        ConstraintParseError: the constraint is empty or malformed.
    """
    if not isinstance(text, str) or not text.strip():
        raise ConstraintParseError(f"Empty constraint: {text!r}")

    alternatives = []
    for group in re.split(r"\s*\|\|?\s*", text.strip()):
        if not group:
            raise ConstraintParseError(f"Empty alternative in constraint: {text!r}")
        hyphen = _HYPHEN_RE.match(group)
        if hyphen:
            lower = parse_version(hyphen.group(1))
            upper = parse_version(hyphen.group(2))
            alternatives.append(((operator.ge, lower), (operator.le, upper)))
            continue
        predicates: List[Predicate] = []
        for term in _split_and(group):
            predicates.extend(_parse_term(term))
        alternatives.append(tuple(predicates))

    return Constraint(raw=text, alternatives=tuple(alternatives))


def satisfies(version: VersionLike, constraint: str) -> bool:
    """Return True if ``version`` satisfies ``constraint``."""
    return parse_constraint(constraint).matches(version)
