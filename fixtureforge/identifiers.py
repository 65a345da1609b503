"""
Validated string identifiers.

Every identifier kind is a small frozen value type that runs its raw value
through normalize_identifier(). Table and column names compare and hash
case-insensitively; scenario names, markers, schema and data-source names
are case-sensitive. All kinds order lexicographically on the trimmed value.
"""

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Any

from fixtureforge.constants import DEFAULT_SCENARIO_MARKER


def normalize_identifier(value: Any, kind: str) -> str:
    """Trim an identifier and reject non-strings and blanks."""
    if isinstance(value, _IDENTIFIER_TYPES):
        value = value.value
    if not isinstance(value, str):
        raise ValueError(f"{kind} must be a string, got {type(value).__name__}")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{kind} must not be blank")
    return trimmed


def _init_key(obj, kind: str, case_insensitive: bool) -> None:
    value = normalize_identifier(obj.value, kind)
    object.__setattr__(obj, "value", value)
    object.__setattr__(obj, "_key", value.upper() if case_insensitive else value)


@total_ordering
@dataclass(frozen=True)
class TableName:
    value: str = field(compare=False)
    _key: str = field(init=False, repr=False)

    def __post_init__(self):
        _init_key(self, "Table name", case_insensitive=True)

    def __lt__(self, other):
        if not isinstance(other, TableName):
            return NotImplemented
        return self.value < other.value

    def __str__(self):
        return self.value


@total_ordering
@dataclass(frozen=True)
class ColumnName:
    value: str = field(compare=False)
    _key: str = field(init=False, repr=False)

    def __post_init__(self):
        _init_key(self, "Column name", case_insensitive=True)

    def __lt__(self, other):
        if not isinstance(other, ColumnName):
            return NotImplemented
        return self.value < other.value

    def __str__(self):
        return self.value


@total_ordering
@dataclass(frozen=True)
class SchemaName:
    value: str = field(compare=False)
    _key: str = field(init=False, repr=False)

    def __post_init__(self):
        _init_key(self, "Schema name", case_insensitive=False)

    def __lt__(self, other):
        if not isinstance(other, SchemaName):
            return NotImplemented
        return self.value < other.value

    def __str__(self):
        return self.value


@total_ordering
@dataclass(frozen=True)
class ScenarioName:
    value: str = field(compare=False)
    _key: str = field(init=False, repr=False)

    def __post_init__(self):
        _init_key(self, "Scenario name", case_insensitive=False)

    def __lt__(self, other):
        if not isinstance(other, ScenarioName):
            return NotImplemented
        return self.value < other.value

    def __str__(self):
        return self.value


@total_ordering
@dataclass(frozen=True)
class ScenarioMarker:
    value: str = field(default=DEFAULT_SCENARIO_MARKER, compare=False)
    _key: str = field(init=False, repr=False)

    def __post_init__(self):
        _init_key(self, "Scenario marker", case_insensitive=False)

    def __lt__(self, other):
        if not isinstance(other, ScenarioMarker):
            return NotImplemented
        return self.value < other.value

    def __str__(self):
        return self.value


@total_ordering
@dataclass(frozen=True)
class DataSourceName:
    value: str = field(compare=False)
    _key: str = field(init=False, repr=False)

    def __post_init__(self):
        _init_key(self, "Data source name", case_insensitive=False)

    def __lt__(self, other):
        if not isinstance(other, DataSourceName):
            return NotImplemented
        return self.value < other.value

    def __str__(self):
        return self.value


_IDENTIFIER_TYPES = (TableName, ColumnName, SchemaName, ScenarioName, ScenarioMarker, DataSourceName)
