from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError

from fixtureforge.executors.base import TableExecutor
from fixtureforge.identifiers import TableName
from fixtureforge.models import Table
from fixtureforge.outcome import Outcome

# Dialects with no TRUNCATE statement at all
NO_TRUNCATE_DIALECTS = frozenset({"sqlite"})


class TruncateExecutor(TableExecutor):
    """
    Truncates every table, children first.

    When the database rejects TRUNCATE (foreign keys, permissions, dialect)
    the table is emptied with DELETE instead and the outcome is degraded.
    """

    def execute(self, tables: Sequence[Table]) -> List[Outcome[TableName]]:
        return [self.truncate_table(table.name) for table in reversed(tables)]

    def truncate_table(self, table_name: TableName) -> Outcome[TableName]:
        dialect = self.connection.dialect.name
        if dialect in NO_TRUNCATE_DIALECTS:
            reason = f"{dialect} does not support TRUNCATE TABLE"
        else:
            statement = self.builder.build_truncate(table_name)
            self.logger.debug(f"Executing: {statement.sql}", extra={"table_name": table_name.value})
            try:
                # Savepoint keeps a rejected TRUNCATE from aborting the outer transaction
                with self.connection.begin_nested():
                    self.connection.execute(statement.to_text())
                return Outcome.success(table_name)
            except SQLAlchemyError as e:
                reason = str(e).splitlines()[0]

        self.logger.warning(
            f"TRUNCATE not applied, deleting all rows instead: {reason}",
            extra={"table_name": table_name.value, "operation": "TRUNCATE_TABLE"},
        )
        self.run(table_name, self.builder.build_delete_all(table_name))
        return Outcome.degraded(table_name, reason)
