"""
Tests for column comparison strategies.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from fixtureforge.constants import ComparisonType
from fixtureforge.strategies import (
    ColumnStrategyMapping,
    ComparisonStrategy,
    normalize_timestamp,
    strict_equals,
)


class TestStrictEquals:
    """Test representation-tolerant equality."""

    @pytest.mark.parametrize("expected, actual", [
        (None, None),
        ("abc", "abc"),
        ("1", 1),
        (1, "1"),
        ("1.50", Decimal("1.5")),
        ("12345678901234567890", 12345678901234567890),
        ("true", True),
        (True, "yes"),
        (False, "n"),
        (True, 1),
        ("true", 1),
        ("no", 0),
        (1.0000001, 1.0),
        ("2.5", 2.5),
        ("2024-01-01 10:00:00.0", "2024-01-01 10:00:00"),
        ("2024-01-01 10:00:00", datetime(2024, 1, 1, 10, 0)),
        ("2024-01-15 10:30:00", "2024-01-15 10:30:00.000000"),
        ("2024-01-01", date(2024, 1, 1)),
        ("hello", b"hello"),
        ("[BASE64]aGk=", b"hi"),
        ("[BASE64]aGk=", "[BASE64]aGk="),
        ("plain", "[BASE64]cGxhaW4="),
    ])
    def test_equal(self, expected, actual):
        assert strict_equals(expected, actual)

    @pytest.mark.parametrize("expected, actual", [
        (None, "x"),
        ("x", None),
        ("abc", "ABC"),
        ("1", 2),
        (1.1, 1.0),
        ("abc", 5),
        ("maybe", True),
        ("yes", 2),
        ("2024-01-01 10:00:01", "2024-01-01 10:00:00"),
        ("[BASE64]aGk=", b"ho"),
    ])
    def test_not_equal(self, expected, actual):
        assert not strict_equals(expected, actual)


class TestComparisonStrategy:
    """Test each strategy's matching rule."""

    def test_default_is_strict(self):
        assert ComparisonStrategy().type == ComparisonType.STRICT

    def test_ignore_always_matches(self):
        assert ComparisonStrategy.IGNORE.matches("a", "b")
        assert ComparisonStrategy.IGNORE.matches(None, "b")

    def test_numeric(self):
        assert ComparisonStrategy.NUMERIC.matches("1.0", 1)
        assert ComparisonStrategy.NUMERIC.matches("100", Decimal("1E+2"))
        assert not ComparisonStrategy.NUMERIC.matches("1.0", "1.01")

    def test_numeric_falls_back_to_strict(self):
        assert ComparisonStrategy.NUMERIC.matches("abc", "abc")
        assert not ComparisonStrategy.NUMERIC.matches("abc", "abd")

    def test_nulls_for_value_strategies(self):
        for strategy in (ComparisonStrategy.STRICT, ComparisonStrategy.NUMERIC,
                         ComparisonStrategy.CASE_INSENSITIVE, ComparisonStrategy.TIMESTAMP_FLEXIBLE):
            assert strategy.matches(None, None)
            assert not strategy.matches(None, "1")
            assert not strategy.matches("1", None)

    def test_case_insensitive(self):
        assert ComparisonStrategy.CASE_INSENSITIVE.matches("Straße", "STRASSE")
        assert not ComparisonStrategy.CASE_INSENSITIVE.matches("abc", "abd")

    def test_timestamp_flexible(self):
        strategy = ComparisonStrategy.TIMESTAMP_FLEXIBLE
        assert strategy.matches("2024-01-01 10:00:00.123", "2024-01-01 10:00:00Z")
        assert strategy.matches("2024-01-01T10:00:00+09:00", "2024-01-01 10:00:00")
        assert strategy.matches("2024-01-01 10:00:00", datetime(2024, 1, 1, 10, 0, 0, 250000))
        assert not strategy.matches("2024-01-01 10:00:00", "2024-01-01 10:00:01")

    def test_timestamp_flexible_non_timestamps(self):
        assert ComparisonStrategy.TIMESTAMP_FLEXIBLE.matches(" abc ", "abc")

    def test_not_null(self):
        assert ComparisonStrategy.NOT_NULL.matches(None, "generated")
        assert not ComparisonStrategy.NOT_NULL.matches("x", None)

    def test_regex(self):
        strategy = ComparisonStrategy.regex(r"[A-Z]{3}-\d+")
        assert strategy.matches(None, "ABC-123")
        assert not strategy.matches(None, "ABC-123x")
        assert not strategy.matches(None, None)
        assert ComparisonStrategy.regex(r"\d+").matches(None, 42)

    def test_regex_requires_valid_pattern(self):
        with pytest.raises(ValueError):
            ComparisonStrategy(ComparisonType.REGEX)

    def test_equality_and_repr(self):
        assert ComparisonStrategy.regex("a+") == ComparisonStrategy.regex("a+")
        assert ComparisonStrategy.regex("a+") != ComparisonStrategy.regex("b+")
        assert hash(ComparisonStrategy.NUMERIC) == hash(ComparisonStrategy(ComparisonType.NUMERIC))
        assert repr(ComparisonStrategy.regex("a+")) == "REGEX(a+)"
        assert repr(ComparisonStrategy.STRICT) == "STRICT"


class TestNormalizeTimestamp:
    def test_strips_fraction_and_zone(self):
        assert normalize_timestamp("2024-01-01T10:00:00.999-05:00") == "2024-01-01 10:00:00"

    def test_minutes_only(self):
        assert normalize_timestamp("2024-01-01 10:00") == "2024-01-01 10:00"


class TestColumnStrategyMapping:
    def test_factories(self):
        assert ColumnStrategyMapping.numeric("amount").strategy == ComparisonStrategy.NUMERIC
        assert ColumnStrategyMapping.ignore("created_at").strategy == ComparisonStrategy.IGNORE
        assert ColumnStrategyMapping.regex("code", r"\w+").strategy.pattern == r"\w+"

    def test_key_is_upper_case(self):
        assert ColumnStrategyMapping.strict("email").key == "EMAIL"
