from typing import Iterable, Optional, Union

import sqlparse
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from fixtureforge.comparator import ComparisonOptions, DataSetComparator, RaisingFailureHandler
from fixtureforge.identifiers import ColumnName, TableName
from fixtureforge.logging_config import get_logger
from fixtureforge.models import Table, TableSet
from fixtureforge.reader import TableReader
from fixtureforge.report import ComparisonResult


def validate_select_query(sql: str) -> str:
    """
    Check that sql is exactly one SELECT statement and return it without
    the trailing semicolon. Raises ValueError otherwise.
    """
    if not sql or not sql.strip():
        raise ValueError("SQL query must not be empty")
    statements = [s for s in sqlparse.parse(sql) if str(s).strip().strip(";").strip()]
    if len(statements) != 1:
        raise ValueError(f"Expected a single SELECT statement, got {len(statements)} statements")
    statement = statements[0]
    if statement.get_type() != "SELECT":
        raise ValueError(f"Only SELECT queries are allowed, got {statement.get_type()}")
    return str(statement).strip().rstrip(";").strip()


class ExpectationVerifier:
    """Compares an expected dataset with what the database currently holds."""

    def __init__(self, comparator: Optional[DataSetComparator] = None, schema: Optional[str] = None,
                 order_by_first_column: bool = False):
        self.comparator = comparator or DataSetComparator()
        self.schema = schema
        self.order_by_first_column = order_by_first_column
        self.logger = get_logger("assertion")

    def verify_expectation(self, expected: TableSet, engine: Engine,
                           options: Optional[ComparisonOptions] = None) -> ComparisonResult:
        """
        Read every expected table from the database and compare.

        Only the expected columns (plus any additional ones, minus excluded
        ones) are read. Differences from all tables go into one result, and
        the failure handler is called once if there are any.
        """
        options = options or ComparisonOptions()
        result = ComparisonResult()

        with engine.connect() as connection:
            reader = TableReader(connection, self.schema)
            inspector = inspect(connection)
            for expected_table in expected:
                name = expected_table.name
                if not inspector.has_table(name.value, schema=self.schema):
                    result.add_missing_table(name.value)
                    continue

                columns = self._columns_to_read(expected_table, options)
                order_by = columns[:1] if self.order_by_first_column else ()
                actual_table = reader.fetch_table(name, columns, order_by)
                metadata = {name.value.upper(): reader.column_metadata(name)}
                result.merge(self.comparator.compare(expected_table, actual_table, options, metadata))
                self.logger.debug(f"Verified {expected_table.row_count} expected rows",
                                  extra={"table_name": name.value})

        if result.has_differences:
            handler = options.failure_handler or RaisingFailureHandler()
            handler.handle_failure(result.format_message(), result)
        return result

    @staticmethod
    def _columns_to_read(table: Table, options: ComparisonOptions):
        columns = [c for c in table.columns if not options.is_excluded(c)]
        for extra in sorted(options.additional_columns):
            column = ColumnName(extra)
            if column not in columns and not options.is_excluded(column):
                columns.append(column)
        return columns


class DatabaseAssertion:
    """Entry points for asserting on tables and on arbitrary SELECT results."""

    def __init__(self, comparator: Optional[DataSetComparator] = None):
        self.comparator = comparator or DataSetComparator()

    def assert_equals(self, expected: Union[Table, TableSet], actual: Union[Table, TableSet],
                      options: Optional[ComparisonOptions] = None) -> ComparisonResult:
        return self.comparator.assert_equals(expected, actual, options)

    def assert_equals_ignore_columns(self, expected: Union[Table, TableSet], actual: Union[Table, TableSet],
                                     ignore_columns: Iterable[Union[ColumnName, str]]) -> ComparisonResult:
        return self.comparator.assert_equals(expected, actual, ComparisonOptions(exclude_columns=ignore_columns))

    def assert_equals_by_query(self, expected: Union[Table, TableSet], engine: Engine,
                               table_name: Union[TableName, str], sql_query: str,
                               exclude_columns: Iterable[Union[ColumnName, str]] = (),
                               options: Optional[ComparisonOptions] = None) -> ComparisonResult:
        """Run a SELECT and compare its rows with the expected table."""
        table_name = table_name if isinstance(table_name, TableName) else TableName(table_name)
        if isinstance(expected, TableSet):
            expected_table = expected.get_table(table_name)
            if expected_table is None:
                raise ValueError(f"Table {table_name.value} not found in expected dataset")
        else:
            expected_table = expected

        query = validate_select_query(sql_query)
        options = (options or ComparisonOptions()).with_exclusions(exclude_columns)
        with engine.connect() as connection:
            actual_table = TableReader(connection).execute_query(table_name, query)
        return self.comparator.assert_equals(expected_table, actual_table, options)
