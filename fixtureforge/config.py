from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional

import yaml

from fixtureforge.constants import (
    DEFAULT_EXPECTATION_SUFFIX,
    DEFAULT_LOAD_ORDER_FILE_NAME,
    DEFAULT_SCENARIO_MARKER,
    Operation,
    TableMergeStrategy,
    TableOrderingStrategy,
)
from fixtureforge.exceptions import ConfigurationError


@dataclass(frozen=True)
class ConventionSettings:
    """Where datasets live and how their files are read."""
    base_directory: Optional[str] = None
    expectation_suffix: str = DEFAULT_EXPECTATION_SUFFIX
    scenario_marker: str = DEFAULT_SCENARIO_MARKER
    data_format: str = "csv"
    table_merge_strategy: TableMergeStrategy = TableMergeStrategy.UNION_ALL
    load_order_file_name: str = DEFAULT_LOAD_ORDER_FILE_NAME
    global_exclude_columns: FrozenSet[str] = field(default_factory=frozenset)

    def with_base_directory(self, base_directory: Optional[str]) -> "ConventionSettings":
        return replace(self, base_directory=base_directory)

    def with_expectation_suffix(self, suffix: str) -> "ConventionSettings":
        return replace(self, expectation_suffix=suffix)

    def with_scenario_marker(self, marker: str) -> "ConventionSettings":
        return replace(self, scenario_marker=marker)

    def with_data_format(self, data_format: str) -> "ConventionSettings":
        return replace(self, data_format=data_format)

    def with_table_merge_strategy(self, strategy: TableMergeStrategy) -> "ConventionSettings":
        return replace(self, table_merge_strategy=strategy)

    def with_load_order_file_name(self, file_name: str) -> "ConventionSettings":
        return replace(self, load_order_file_name=file_name)

    def with_global_exclude_columns(self, columns: Iterable[str]) -> "ConventionSettings":
        return replace(self, global_exclude_columns=frozenset(c.upper() for c in columns))


@dataclass(frozen=True)
class OperationDefaults:
    preparation: Operation = Operation.CLEAN_INSERT
    expectation: Operation = Operation.NONE


@dataclass(frozen=True)
class Configuration:
    conventions: ConventionSettings = field(default_factory=ConventionSettings)
    operations: OperationDefaults = field(default_factory=OperationDefaults)
    table_ordering: TableOrderingStrategy = TableOrderingStrategy.AUTO

    @classmethod
    def defaults(cls) -> "Configuration":
        return cls()

    @classmethod
    def from_yaml(cls, path: str) -> "Configuration":
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        try:
            conventions_raw = dict(raw.get("conventions") or {})
            if "global_exclude_columns" in conventions_raw:
                excludes = conventions_raw["global_exclude_columns"] or []
                if not isinstance(excludes, list):
                    raise ConfigurationError(
                        f"conventions.global_exclude_columns in {path} must be a list of column names"
                    )
                conventions_raw["global_exclude_columns"] = frozenset(str(c).upper() for c in excludes)
            conventions = ConventionSettings(**conventions_raw)
            operations = OperationDefaults(**(raw.get("operations") or {}))
            cfg = cls(
                conventions=conventions,
                operations=operations,
                table_ordering=raw.get("table_ordering", TableOrderingStrategy.AUTO),
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key in {path}: {e}") from e

        return cfg.validate()

    def validate(self) -> "Configuration":
        """Return a copy with enum fields converted, or raise ConfigurationError."""
        conventions = self.conventions
        if not conventions.data_format or not str(conventions.data_format).strip():
            raise ConfigurationError("conventions.data_format must not be blank")
        if not conventions.scenario_marker or not str(conventions.scenario_marker).strip():
            raise ConfigurationError("conventions.scenario_marker must not be blank")

        merge_strategy = _enum(TableMergeStrategy, conventions.table_merge_strategy,
                               "conventions.table_merge_strategy")
        preparation = _enum(Operation, self.operations.preparation, "operations.preparation")
        expectation = _enum(Operation, self.operations.expectation, "operations.expectation")
        ordering = _enum(TableOrderingStrategy, self.table_ordering, "table_ordering")

        return Configuration(
            conventions=replace(
                conventions,
                table_merge_strategy=merge_strategy,
                data_format=str(conventions.data_format).strip().lower(),
            ),
            operations=OperationDefaults(preparation=preparation, expectation=expectation),
            table_ordering=ordering,
        )


def _enum(enum_type, value, key: str):
    try:
        return enum_type(str(value.value if isinstance(value, enum_type) else value).strip().upper())
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_type)
        raise ConfigurationError(f"{key} must be one of: {allowed} (got {value!r})") from e
