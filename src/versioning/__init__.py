"""Version model: parsing, ordering, stability tiers and constraints."""

from .models import StabilityTier, Version
from .parser import (
    compare_versions,
    is_valid_version,
    normalize_version,
    parse_stability,
    parse_version,
)
from .constraints import Constraint, ConstraintParseError, parse_constraint, satisfies

__all__ = [
    "StabilityTier",
    "Version",
    "compare_versions",
    "is_valid_version",
    "normalize_version",
    "parse_stability",
    "parse_version",
    "Constraint",
    "ConstraintParseError",
    "parse_constraint",
    "satisfies",
]
