from typing import Optional, Sequence

from sqlalchemy.engine import Connection

from fixtureforge.executors.base import TableExecutor
from fixtureforge.executors.insert import InsertExecutor
from fixtureforge.executors.update import UpdateExecutor
from fixtureforge.introspector import DBIntrospector
from fixtureforge.models import Row, Table


class RefreshExecutor(TableExecutor):
    """
    Upserts rows keyed by the first column.

    Each row is updated first and inserted when no row matched. Rows already
    in the table but absent from the dataset are left alone.
    """

    def __init__(self, connection: Connection, schema: Optional[str] = None,
                 introspector: Optional[DBIntrospector] = None):
        super().__init__(connection, schema, introspector)
        self.updater = UpdateExecutor(connection, schema, introspector)
        self.inserter = InsertExecutor(connection, schema, introspector)

    def execute(self, tables: Sequence[Table]) -> None:
        for table in tables:
            if not self.has_data(table):
                self.logger.debug("Skipping refresh, no data", extra={"table_name": table.name.value})
                continue
            inserted = 0
            for row in table.rows:
                if self.refresh_row(table, row):
                    inserted += 1
            self.logger.debug(
                f"Refreshed {table.row_count} rows ({inserted} inserted)",
                extra={"table_name": table.name.value},
            )

    def refresh_row(self, table: Table, row: Row) -> bool:
        """Update or insert one row; return True when it was inserted."""
        if len(table.columns) == 1:
            # Nothing to update, only make sure the key exists
            if self.row_exists(table, row):
                return False
        elif self.updater.try_update_row(table, row) > 0:
            return False
        self.inserter.insert_rows(table, [row])
        return True

    def row_exists(self, table: Table, row: Row) -> bool:
        statement = self.builder.build_exists(table.name, table.columns[0])
        clause, params = self.binder_for(table.name).bind(statement, [row])
        return self.run(table.name, statement, clause, params).first() is not None
