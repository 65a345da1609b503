from typing import Sequence

from fixtureforge.executors.base import TableExecutor
from fixtureforge.models import Row, Table


class InsertExecutor(TableExecutor):
    def execute(self, tables: Sequence[Table]) -> None:
        for table in tables:
            if not self.has_data(table):
                self.logger.debug("Skipping insert, no data", extra={"table_name": table.name.value})
                continue
            self.insert_rows(table, table.rows)

    def insert_rows(self, table: Table, rows: Sequence[Row]) -> None:
        statement = self.builder.build_insert(table.name, table.columns)
        clause, params = self.binder_for(table.name).bind(statement, rows)
        self.run(table.name, statement, clause, params)
