from typing import Optional, Sequence

from sqlalchemy.engine import Connection, Engine

from fixtureforge.constants import Operation, TableOrderingStrategy
from fixtureforge.exceptions import DatabaseTesterError
from fixtureforge.executors import (
    DeleteAllExecutor,
    DeleteExecutor,
    InsertExecutor,
    RefreshExecutor,
    TruncateExecutor,
    UpdateExecutor,
)
from fixtureforge.logging_config import get_logger
from fixtureforge.models import Table, TableSet
from fixtureforge.ordering import TableOrderResolver


class OperationExecutor:
    """
    Applies a dataset to the database under one operation.

    Everything runs on a single connection inside a single transaction:
    either every table is written or none is.
    """

    def __init__(self, order_resolver: Optional[TableOrderResolver] = None):
        self.order_resolver = order_resolver or TableOrderResolver()
        self.logger = get_logger("operation_executor")

    def execute(self, operation: Operation, table_set: TableSet, engine: Engine,
                ordering: TableOrderingStrategy = TableOrderingStrategy.AUTO,
                schema: Optional[str] = None) -> None:
        operation = Operation(operation)
        if operation == Operation.NONE:
            self.logger.debug("Operation is NONE, nothing to do", extra={"operation": operation.value})
            return

        try:
            with engine.connect() as connection:
                outcome = self.order_resolver.resolve(table_set.table_names, connection, schema, ordering)
                if outcome.is_degraded:
                    self.logger.debug(f"Using unresolved table order: {outcome.fallback_reason}")
                tables = [table_set.get_table(name) for name in outcome.value]

                # Metadata reads autobegin a transaction; start clean
                if connection.in_transaction():
                    connection.rollback()

                with connection.begin():
                    self.execute_operation(operation, tables, connection, schema)
        except Exception as e:
            raise DatabaseTesterError(f"Failed to execute operation {operation.value}") from e

        self.logger.debug(
            f"Executed on {len(table_set)} tables",
            extra={"operation": operation.value},
        )

    def execute_operation(self, operation: Operation, tables: Sequence[Table], connection: Connection,
                          schema: Optional[str] = None) -> None:
        """Dispatch to the executors; tables must already be in write order."""
        self.logger.debug(
            f"Executing on tables {[t.name.value for t in tables]}",
            extra={"operation": operation.value},
        )
        if operation == Operation.NONE:
            return
        if operation == Operation.INSERT:
            InsertExecutor(connection, schema).execute(tables)
        elif operation == Operation.UPDATE:
            UpdateExecutor(connection, schema).execute(tables)
        elif operation == Operation.DELETE:
            DeleteExecutor(connection, schema).execute(tables)
        elif operation == Operation.DELETE_ALL:
            DeleteAllExecutor(connection, schema).execute(tables)
        elif operation == Operation.REFRESH:
            RefreshExecutor(connection, schema).execute(tables)
        elif operation == Operation.TRUNCATE_TABLE:
            TruncateExecutor(connection, schema).execute(tables)
        elif operation == Operation.CLEAN_INSERT:
            DeleteAllExecutor(connection, schema).execute(tables)
            InsertExecutor(connection, schema).execute(tables)
        elif operation == Operation.TRUNCATE_INSERT:
            TruncateExecutor(connection, schema).execute(tables)
            InsertExecutor(connection, schema).execute(tables)
        else:
            raise ValueError(f"Unsupported operation: {operation}")
