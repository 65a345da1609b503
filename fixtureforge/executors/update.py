from typing import Sequence

from fixtureforge.executors.base import TableExecutor
from fixtureforge.models import Row, Table


class UpdateExecutor(TableExecutor):
    """
    Updates rows matched by the table's first column.

    The first column acts as the key, every other column is written. Keys
    with no matching row are skipped without error.
    """

    def execute(self, tables: Sequence[Table]) -> None:
        for table in tables:
            if not self.has_data(table):
                self.logger.debug("Skipping update, no data", extra={"table_name": table.name.value})
                continue
            if len(table.columns) < 2:
                self.logger.debug("Skipping update, no columns besides the key",
                                  extra={"table_name": table.name.value})
                continue
            statement = self.builder.build_update(table.name, table.columns[0], table.columns[1:])
            clause, params = self.binder_for(table.name).bind(statement, table.rows)
            self.run(table.name, statement, clause, params)

    def try_update_row(self, table: Table, row: Row) -> int:
        """Update a single row by key and return the number of rows matched."""
        statement = self.builder.build_update(table.name, table.columns[0], table.columns[1:])
        clause, params = self.binder_for(table.name).bind(statement, [row])
        return self.run(table.name, statement, clause, params).rowcount
