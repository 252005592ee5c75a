"""Tests for breakpoint rules and classification."""

import pytest

from updates.breakpoints import (
    CORE_BREAKPOINTS,
    NO_BREAKPOINTS,
    BreakpointTable,
    make_rule,
    parse_interval,
)
from versioning.parser import parse_version


class TestCoreBreakpoints:
    """Test the built-in core breakpoint table."""

    @pytest.mark.parametrize("installed,target", [
        ("3.0.0-alpha.2", "3.0.41.1"),
        ("3.0.0", "3.0.41.1"),
        ("3.0.10", "3.0.41.1"),
        ("3.0.41", "3.0.41.1"),
        ("3.1.20", "3.1.34"),
        ("3.1.25", "3.1.34"),
        ("3.1.33", "3.1.34"),
    ])
    def test_matches(self, installed, target):
        """Test versions inside an interval map to its target."""
        rule = CORE_BREAKPOINTS.classify(installed)

        assert rule is not None
        assert rule.target == parse_version(target)

    @pytest.mark.parametrize("installed", [
        "2.9.0", "3.0.0-alpha.1", "3.0.41.1", "3.0.42", "3.1.0", "3.1.19", "3.1.34", "3.2.0", "4.0.0",
    ])
    def test_no_match(self, installed):
        """Test bounds are honored and versions outside every interval are unaffected."""
        assert CORE_BREAKPOINTS.classify(installed) is None

    def test_classification_is_deterministic(self):
        """Test repeated classification returns the same rule."""
        assert CORE_BREAKPOINTS.classify("3.1.25") is CORE_BREAKPOINTS.classify("3.1.25")

    def test_empty_table(self):
        """Test a table without rules never matches."""
        assert len(NO_BREAKPOINTS) == 0
        assert NO_BREAKPOINTS.classify("3.0.10") is None


class TestRulePriority:
    """Test evaluation order for overlapping rules."""

    def test_narrowest_interval_wins(self):
        """Test a narrow rule beats a wide one declared before it."""
        wide = make_rule("[1.0,3.0)", "3.0")
        narrow = make_rule("[1.5,1.6)", "1.6")
        table = BreakpointTable([wide, narrow])

        assert table.rules == [narrow, wide]
        assert table.classify("1.5.3").target == parse_version("1.6")
        assert table.classify("1.2").target == parse_version("3.0")

    def test_unbounded_sorts_last(self):
        """Test an open-ended rule is only used when nothing bounded matches."""
        open_ended = make_rule("[2.0,)", "9.0")
        bounded = make_rule("[2.0,2.5)", "2.5")
        table = BreakpointTable([open_ended, bounded])

        assert table.classify("2.1").target == parse_version("2.5")
        assert table.classify("3.0").target == parse_version("9.0")

    def test_ties_keep_declaration_order(self):
        """Test identical intervals resolve to the first declared rule."""
        first = make_rule("[1.0,2.0)", "2.0", "first")
        second = make_rule("[1.0,2.0)", "1.9", "second")

        assert BreakpointTable([first, second]).classify("1.1").reason == "first"


class TestIntervals:
    """Test interval notation parsing."""

    def test_inclusive_flags(self):
        """Test bracket characters set inclusivity."""
        lower, upper, lower_inclusive, upper_inclusive = parse_interval("(1.0,2.0]")

        assert lower == parse_version("1.0")
        assert upper == parse_version("2.0")
        assert lower_inclusive is False
        assert upper_inclusive is True

    def test_inclusive_upper_contains_bound(self):
        """Test ] includes the upper bound."""
        rule = make_rule("[1.0,2.0]", "2.1")

        assert rule.contains(parse_version("2.0")) is True
        assert rule.contains(parse_version("2.0.1")) is False

    def test_interval_round_trip(self):
        """Test the interval property renders bracket notation."""
        assert make_rule("[3.1.20,3.1.34)", "3.1.34").interval == "[3.1.20,3.1.34)"
        assert make_rule("(,2.0]", "2.0").interval == "(,2.0]"

    @pytest.mark.parametrize("text", ["1.0,2.0", "[1.0;2.0)", "[2.0,1.0)", "[abc,1.0)", "", None])
    def test_invalid(self, text):
        """Test malformed intervals raise ValueError."""
        with pytest.raises(ValueError):
            parse_interval(text)


class TestFromConfig:
    """Test building tables from config entries."""

    def test_builds_rules(self):
        """Test entries become rules with reasons."""
        table = BreakpointTable.from_config([
            {"range": "[1.0.0,1.4.0)", "target": "1.4.0", "reason": "schema migration"},
        ])

        assert len(table) == 1
        assert table.rules[0].reason == "schema migration"
        assert table.classify("1.2.0").target == parse_version("1.4.0")

    def test_missing_target(self):
        """Test entries without a target are rejected."""
        with pytest.raises(ValueError):
            BreakpointTable.from_config([{"range": "[1.0.0,1.4.0)"}])
