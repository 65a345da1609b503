"""
Column comparison strategies.

A strategy decides whether an expected cell matches the actual one. Expected
values usually come from text files while actual values come back from the
driver typed, so STRICT equality is lenient about representation: "1" equals
1, "true" equals True, and "2024-01-01 10:00:00.0" equals
"2024-01-01 10:00:00".
"""

import binascii
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from fixtureforge.binder import parse_binary
from fixtureforge.constants import BASE64_PREFIX, FALSE_LITERALS, TRUE_LITERALS, ComparisonType
from fixtureforge.identifiers import ColumnName

FLOAT_EPSILON = 1e-6

TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[ T](\d{2}:\d{2}(?::\d{2})?)(\.\d+)?(Z|[+-]\d{2}:?\d{2})?$"
)
FRACTION_TRAILING_ZEROS = re.compile(r"(\.\d*?)0+$")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidOperation(f"boolean is not numeric: {value}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value).strip())


def _as_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _boolean_equals(flag: bool, other: Any) -> bool:
    if isinstance(other, bool):
        return flag == other
    if isinstance(other, (int, float, Decimal)):
        return other == (1 if flag else 0)
    text = str(other).strip().lower()
    if text in TRUE_LITERALS:
        return flag
    if text in FALSE_LITERALS:
        return not flag
    return False


def _numbers_equal(expected: Any, actual: Any) -> bool:
    if isinstance(expected, float) or isinstance(actual, float):
        a, b = float(expected), float(actual)
        if math.isnan(a) or math.isnan(b):
            return math.isnan(a) and math.isnan(b)
        return math.isclose(a, b, rel_tol=FLOAT_EPSILON, abs_tol=0.0)
    return _to_decimal(expected) == _to_decimal(actual)


def _normalize_timestamp_text(text: str) -> str:
    text = FRACTION_TRAILING_ZEROS.sub(r"\1", text.strip().replace("T", " ", 1))
    return text[:-1] if text.endswith(".") else text


def strict_equals(expected: Any, actual: Any) -> bool:
    """Representation-tolerant equality used by the STRICT strategy."""
    if expected is None or actual is None:
        return expected is None and actual is None
    if expected == actual and type(expected) is type(actual):
        return True

    if isinstance(expected, bool):
        return _boolean_equals(expected, actual)
    if isinstance(actual, bool):
        return _boolean_equals(actual, expected)

    if isinstance(expected, (int, float, Decimal)) or isinstance(actual, (int, float, Decimal)):
        try:
            return _numbers_equal(expected, actual)
        except (InvalidOperation, ValueError):
            # Booleans stored as 0/1 against literals such as "true" or "no"
            if isinstance(expected, (int, float, Decimal)):
                number, other = expected, actual
            else:
                number, other = actual, expected
            if number in (0, 1):
                return _boolean_equals(number == 1, other)
            return False

    if _is_binary(expected) or _is_binary(actual):
        return _as_bytes(expected) == _as_bytes(actual)

    if isinstance(expected, (datetime, date, time)) or isinstance(actual, (datetime, date, time)):
        return _normalize_timestamp_text(_as_text(expected)) == _normalize_timestamp_text(_as_text(actual))

    expected_text, actual_text = _as_text(expected), _as_text(actual)
    if expected_text == actual_text:
        return True
    if TIMESTAMP_PATTERN.match(expected_text.strip()) and TIMESTAMP_PATTERN.match(actual_text.strip()):
        return _normalize_timestamp_text(expected_text) == _normalize_timestamp_text(actual_text)
    return False


def _is_binary(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, memoryview)) or (
        isinstance(value, str) and value.startswith(BASE64_PREFIX)
    )


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    try:
        return parse_binary(str(value))
    except binascii.Error:
        return str(value).encode("utf-8")


def normalize_timestamp(value: Any) -> str:
    """Drop fraction and zone offset, and use a space between date and time."""
    text = _as_text(value).strip()
    match = TIMESTAMP_PATTERN.match(text)
    if not match:
        return text
    return f"{match.group(1)} {match.group(2)}"


@dataclass(frozen=True)
class ComparisonStrategy:
    type: ComparisonType = ComparisonType.STRICT
    pattern: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "type", ComparisonType(self.type))
        if self.type == ComparisonType.REGEX:
            if not self.pattern:
                raise ValueError("REGEX strategy requires a pattern")
            re.compile(self.pattern)

    @classmethod
    def regex(cls, pattern: str) -> "ComparisonStrategy":
        return cls(ComparisonType.REGEX, pattern)

    def matches(self, expected: Any, actual: Any) -> bool:
        kind = self.type
        if kind == ComparisonType.IGNORE:
            return True
        if kind == ComparisonType.NOT_NULL:
            return actual is not None
        if kind == ComparisonType.REGEX:
            return actual is not None and re.fullmatch(self.pattern, _as_text(actual)) is not None

        if expected is None or actual is None:
            return expected is None and actual is None

        if kind == ComparisonType.NUMERIC:
            try:
                return _to_decimal(expected).compare(_to_decimal(actual)) == 0
            except (InvalidOperation, ValueError):
                return strict_equals(expected, actual)
        if kind == ComparisonType.CASE_INSENSITIVE:
            return _as_text(expected).casefold() == _as_text(actual).casefold()
        if kind == ComparisonType.TIMESTAMP_FLEXIBLE:
            return normalize_timestamp(expected) == normalize_timestamp(actual)
        return strict_equals(expected, actual)

    def __repr__(self):
        if self.type == ComparisonType.REGEX:
            return f"REGEX({self.pattern})"
        return self.type.value


ComparisonStrategy.STRICT = ComparisonStrategy(ComparisonType.STRICT)
ComparisonStrategy.IGNORE = ComparisonStrategy(ComparisonType.IGNORE)
ComparisonStrategy.NUMERIC = ComparisonStrategy(ComparisonType.NUMERIC)
ComparisonStrategy.CASE_INSENSITIVE = ComparisonStrategy(ComparisonType.CASE_INSENSITIVE)
ComparisonStrategy.TIMESTAMP_FLEXIBLE = ComparisonStrategy(ComparisonType.TIMESTAMP_FLEXIBLE)
ComparisonStrategy.NOT_NULL = ComparisonStrategy(ComparisonType.NOT_NULL)


@dataclass(frozen=True)
class ColumnStrategyMapping:
    """Binds a strategy to a column; the name is matched case-insensitively."""
    column: ColumnName
    strategy: ComparisonStrategy = ComparisonStrategy.STRICT

    def __post_init__(self):
        if not isinstance(self.column, ColumnName):
            object.__setattr__(self, "column", ColumnName(self.column))

    @property
    def key(self) -> str:
        return self.column.value.upper()

    @classmethod
    def strict(cls, column) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.STRICT)

    @classmethod
    def ignore(cls, column) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.IGNORE)

    @classmethod
    def numeric(cls, column) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.NUMERIC)

    @classmethod
    def case_insensitive(cls, column) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.CASE_INSENSITIVE)

    @classmethod
    def timestamp_flexible(cls, column) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.TIMESTAMP_FLEXIBLE)

    @classmethod
    def not_null(cls, column) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.NOT_NULL)

    @classmethod
    def regex(cls, column, pattern: str) -> "ColumnStrategyMapping":
        return cls(column, ComparisonStrategy.regex(pattern))
