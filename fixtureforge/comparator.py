from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Union

from fixtureforge.exceptions import ValidationError
from fixtureforge.identifiers import ColumnName
from fixtureforge.logging_config import get_logger
from fixtureforge.models import ColumnMetadata, Table, TableSet
from fixtureforge.report import ComparisonResult
from fixtureforge.strategies import ColumnStrategyMapping, ComparisonStrategy


class AssertionFailureHandler(ABC):
    @abstractmethod
    def handle_failure(self, message: str, result: ComparisonResult) -> None:
        """Called once per comparison that found differences."""
        pass


class RaisingFailureHandler(AssertionFailureHandler):
    def handle_failure(self, message: str, result: ComparisonResult) -> None:
        raise ValidationError(message, result)


class CollectingFailureHandler(AssertionFailureHandler):
    """Keeps failed results instead of raising, for soft assertions."""

    def __init__(self):
        self.failures: List[ComparisonResult] = []
        self.messages: List[str] = []

    def handle_failure(self, message: str, result: ComparisonResult) -> None:
        self.failures.append(result)
        self.messages.append(message)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


def _upper(column) -> str:
    return column.value.upper() if isinstance(column, ColumnName) else str(column).strip().upper()


@dataclass
class ComparisonOptions:
    column_strategies: Union[Mapping[str, ComparisonStrategy], Iterable[ColumnStrategyMapping]] = field(default_factory=dict)
    exclude_columns: Iterable[Union[ColumnName, str]] = field(default_factory=frozenset)
    additional_columns: Iterable[Union[ColumnName, str]] = field(default_factory=frozenset)
    failure_handler: Optional[AssertionFailureHandler] = None

    def __post_init__(self):
        strategies = self.column_strategies
        if isinstance(strategies, Mapping):
            self.column_strategies = {_upper(k): v for k, v in strategies.items()}
        else:
            self.column_strategies = {m.key: m.strategy for m in strategies}
        self.exclude_columns = frozenset(_upper(c) for c in self.exclude_columns)
        self.additional_columns = frozenset(_upper(c) for c in self.additional_columns)

    def strategy_for(self, column: ColumnName) -> ComparisonStrategy:
        return self.column_strategies.get(column.value.upper(), ComparisonStrategy.STRICT)

    def is_excluded(self, column: ColumnName) -> bool:
        return column.value.upper() in self.exclude_columns

    def with_exclusions(self, columns: Iterable[Union[ColumnName, str]]) -> "ComparisonOptions":
        return ComparisonOptions(
            column_strategies=dict(self.column_strategies),
            exclude_columns=set(self.exclude_columns) | {_upper(c) for c in columns},
            additional_columns=self.additional_columns,
            failure_handler=self.failure_handler,
        )


class DataSetComparator:
    """
    Compares expected tables with actual tables.

    Every difference is collected before the failure handler sees the
    result, so one failing assertion reports all mismatches at once.
    """

    def __init__(self):
        self.logger = get_logger("comparator")

    def assert_equals(self, expected: Union[Table, TableSet], actual: Union[Table, TableSet],
                      options: Optional[ComparisonOptions] = None,
                      metadata: Optional[Dict[str, Dict[str, ColumnMetadata]]] = None) -> ComparisonResult:
        options = options or ComparisonOptions()
        result = self.compare(expected, actual, options, metadata)
        if result.has_differences:
            handler = options.failure_handler or RaisingFailureHandler()
            handler.handle_failure(result.format_message(), result)
        return result

    def compare(self, expected: Union[Table, TableSet], actual: Union[Table, TableSet],
                options: Optional[ComparisonOptions] = None,
                metadata: Optional[Dict[str, Dict[str, ColumnMetadata]]] = None) -> ComparisonResult:
        """
        Collect differences without invoking the failure handler.

        metadata maps upper-cased table names to upper-cased column names to
        the ColumnMetadata attached to value mismatches.
        """
        options = options or ComparisonOptions()
        metadata = metadata or {}
        result = ComparisonResult()

        if isinstance(expected, Table) and isinstance(actual, Table):
            self._compare_tables(expected, actual, options, metadata.get(expected.name.value.upper(), {}), result)
            return result
        if not (isinstance(expected, TableSet) and isinstance(actual, TableSet)):
            raise TypeError(
                f"Cannot compare {type(expected).__name__} with {type(actual).__name__}"
            )

        if len(expected) != len(actual):
            result.add_table_count_mismatch(len(expected), len(actual))

        for expected_table in expected:
            actual_table = actual.get_table(expected_table.name)
            if actual_table is None:
                result.add_missing_table(expected_table.name.value)
                continue
            self._compare_tables(
                expected_table, actual_table, options,
                metadata.get(expected_table.name.value.upper(), {}), result,
            )

        self.logger.debug(f"Compared {len(expected)} tables, {result.difference_count} differences")
        return result

    def _compare_tables(self, expected: Table, actual: Table, options: ComparisonOptions,
                        column_metadata: Dict[str, ColumnMetadata], result: ComparisonResult) -> None:
        table_name = expected.name.value
        if expected.row_count != actual.row_count:
            result.add_row_count_mismatch(table_name, expected.row_count, actual.row_count)
            return

        columns = list(expected.columns)
        for extra in sorted(options.additional_columns):
            column = ColumnName(extra)
            if column not in columns:
                columns.append(column)
        columns = [c for c in columns if not options.is_excluded(c)]

        for index, (expected_row, actual_row) in enumerate(zip(expected.rows, actual.rows)):
            for column in columns:
                actual_cell = actual_row.get_value(column)
                if actual_cell is None:
                    result.add_missing_column(table_name, index, column.value)
                    continue
                expected_cell = expected_row.get_value(column)
                expected_value = expected_cell.value if expected_cell is not None else None
                if not options.strategy_for(column).matches(expected_value, actual_cell.value):
                    result.add_value_mismatch(
                        table_name, index, column.value, expected_value, actual_cell.value,
                        column_metadata.get(column.value.upper()),
                    )
