"""
FixtureForge Constants

Centralized definitions for operation names, strategy selectors and the
reserved markers used in dataset files, to reduce magic strings throughout
the codebase.
"""

import re
from enum import Enum
from typing import FrozenSet


class Operation(str, Enum):
    """Write semantics applied to a dataset."""

    NONE = "NONE"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DELETE_ALL = "DELETE_ALL"
    REFRESH = "REFRESH"
    TRUNCATE_TABLE = "TRUNCATE_TABLE"
    CLEAN_INSERT = "CLEAN_INSERT"
    TRUNCATE_INSERT = "TRUNCATE_INSERT"


class TableOrderingStrategy(str, Enum):
    """How the processing order of tables is decided."""

    AUTO = "AUTO"
    LOAD_ORDER_FILE = "LOAD_ORDER_FILE"
    FOREIGN_KEY = "FOREIGN_KEY"
    ALPHABETICAL = "ALPHABETICAL"


class TableMergeStrategy(str, Enum):
    """How tables sharing a name across several datasets are combined."""

    FIRST = "FIRST"
    LAST = "LAST"
    UNION = "UNION"
    UNION_ALL = "UNION_ALL"


class ComparisonType(str, Enum):
    """Per-column comparison modes."""

    STRICT = "STRICT"
    IGNORE = "IGNORE"
    NUMERIC = "NUMERIC"
    CASE_INSENSITIVE = "CASE_INSENSITIVE"
    TIMESTAMP_FLEXIBLE = "TIMESTAMP_FLEXIBLE"
    NOT_NULL = "NOT_NULL"
    REGEX = "REGEX"


class SqlTypeCategory(str, Enum):
    """Coarse SQL type families used for parameter coercion."""

    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    BINARY = "BINARY"
    OTHER = "OTHER"


DEFAULT_SCENARIO_MARKER = "[Scenario]"
DEFAULT_EXPECTATION_SUFFIX = "/expected"
DEFAULT_LOAD_ORDER_FILE_NAME = "load-order.txt"
DEFAULT_DATA_SOURCE_NAME = "_defaultDataSource_"

# Prefix for base64-encoded binary cells in dataset files
BASE64_PREFIX = "[BASE64]"

# Plain identifier with at most one schema qualifier
SAFE_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

TRUE_LITERALS: FrozenSet[str] = frozenset({"true", "1", "yes", "y"})
FALSE_LITERALS: FrozenSet[str] = frozenset({"false", "0", "no", "n"})

DATASET_KEY = "(dataset)"
