from typing import Optional, Sequence, Union

from fixtureforge.assertion import ExpectationVerifier
from fixtureforge.comparator import ComparisonOptions
from fixtureforge.config import Configuration
from fixtureforge.constants import Operation, TableOrderingStrategy
from fixtureforge.identifiers import DataSourceName
from fixtureforge.logging_config import get_logger
from fixtureforge.merger import DataSetMerger
from fixtureforge.models import TableSet
from fixtureforge.operation_executor import OperationExecutor
from fixtureforge.registry import DataSourceRegistry
from fixtureforge.report import ComparisonResult


class DatabaseTester:
    """
    Prepares a database from datasets and verifies it afterwards.

    Engines are looked up in the registry by data-source name; without a
    name the default engine is used.
    """

    def __init__(self, configuration: Optional[Configuration] = None,
                 registry: Optional[DataSourceRegistry] = None,
                 executor: Optional[OperationExecutor] = None,
                 verifier: Optional[ExpectationVerifier] = None):
        self.configuration = (configuration or Configuration.defaults()).validate()
        self.registry = registry or DataSourceRegistry()
        self.executor = executor or OperationExecutor()
        self.verifier = verifier or ExpectationVerifier()
        self.merger = DataSetMerger()
        self.logger = get_logger("tester")

    def prepare(self, table_sets: Union[TableSet, Sequence[TableSet]],
                data_source: Union[DataSourceName, str, None] = None,
                operation: Optional[Operation] = None,
                ordering: Optional[TableOrderingStrategy] = None) -> TableSet:
        """Merge the datasets and write them; returns what was written."""
        if isinstance(table_sets, TableSet):
            table_sets = [table_sets]
        merged = self.merger.merge(list(table_sets), self.configuration.conventions.table_merge_strategy)
        operation = Operation(operation or self.configuration.operations.preparation)
        ordering = TableOrderingStrategy(ordering or self.configuration.table_ordering)

        engine = self.registry.get(data_source)
        self.logger.info(
            f"Preparing {len(merged)} tables",
            extra={"operation": operation.value, "data_source": data_source or "default"},
        )
        self.executor.execute(operation, merged, engine, ordering)
        return merged

    def expect(self, expected: TableSet, data_source: Union[DataSourceName, str, None] = None,
               options: Optional[ComparisonOptions] = None,
               operation: Optional[Operation] = None) -> ComparisonResult:
        """
        Verify the database against the expected dataset.

        The configured global exclusions are added to any in options. Once
        verification is done the expectation operation (NONE by default) is
        applied with the expected dataset, also when verification failed.
        """
        options = options or ComparisonOptions()
        global_excludes = self.configuration.conventions.global_exclude_columns
        if global_excludes:
            options = options.with_exclusions(global_excludes)

        engine = self.registry.get(data_source)
        self.logger.info(
            f"Verifying {len(expected)} tables",
            extra={"data_source": data_source or "default"},
        )
        operation = Operation(operation or self.configuration.operations.expectation)
        try:
            return self.verifier.verify_expectation(expected, engine, options)
        finally:
            if operation != Operation.NONE:
                self.logger.info(
                    f"Applying expectation operation to {len(expected)} tables",
                    extra={"operation": operation.value, "data_source": data_source or "default"},
                )
                self.executor.execute(operation, expected, engine, self.configuration.table_ordering)
