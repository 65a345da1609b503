from typing import Sequence

from fixtureforge.executors.base import TableExecutor
from fixtureforge.identifiers import TableName
from fixtureforge.models import Table


class DeleteExecutor(TableExecutor):
    """Deletes the dataset's rows, matched by the table's first column."""

    def execute(self, tables: Sequence[Table]) -> None:
        for table in tables:
            if not self.has_data(table):
                self.logger.debug("Skipping delete, no data", extra={"table_name": table.name.value})
                continue
            statement = self.builder.build_delete(table.name, table.columns[0])
            clause, params = self.binder_for(table.name).bind(statement, table.rows)
            self.run(table.name, statement, clause, params)


class DeleteAllExecutor(TableExecutor):
    """Empties every table, children first."""

    def execute(self, tables: Sequence[Table]) -> None:
        # Tables arrive in write order; reversed so dependents go first
        for table in reversed(tables):
            self.delete_all_rows(table.name)

    def delete_all_rows(self, table_name: TableName) -> None:
        self.run(table_name, self.builder.build_delete_all(table_name))
