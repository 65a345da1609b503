from typing import Dict, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Connection, Result

from fixtureforge.binder import encode_binary
from fixtureforge.identifiers import ColumnName, TableName
from fixtureforge.introspector import DBIntrospector
from fixtureforge.logging_config import get_logger
from fixtureforge.models import ColumnMetadata, Row, Table, TableSet
from fixtureforge.sql_builder import SqlBuilder


class TableReader:
    """Reads live table contents into the tabular model."""

    def __init__(self, connection: Connection, schema: Optional[str] = None):
        self.connection = connection
        self.schema = schema
        self.builder = SqlBuilder(schema)
        self.logger = get_logger("reader")

    def fetch_table(self, table_name: TableName, columns: Sequence[ColumnName] = (),
                    order_by: Sequence[ColumnName] = ()) -> Table:
        """
        Select a table, restricted to columns when given.

        Without order_by rows come back in whatever order the database
        returns them.
        """
        statement = self.builder.build_select(table_name, columns, order_by)
        self.logger.debug(f"Executing: {statement.sql}", extra={"table_name": table_name.value})
        result = self.connection.execute(statement.to_text())
        return self._to_table(table_name, result, columns)

    def fetch_table_set(self, table_names: Sequence[TableName]) -> TableSet:
        return TableSet(tuple(self.fetch_table(name) for name in table_names))

    def execute_query(self, table_name: TableName, sql: str) -> Table:
        self.logger.debug(f"Executing query: {sql}", extra={"table_name": table_name.value})
        return self._to_table(table_name, self.connection.execute(text(sql)))

    def column_metadata(self, table_name: TableName) -> Dict[str, ColumnMetadata]:
        return DBIntrospector(self.connection, self.schema).column_metadata(table_name.value)

    @staticmethod
    def _to_table(table_name: TableName, result: Result, columns: Sequence[ColumnName] = ()) -> Table:
        keys = list(result.keys())
        if columns and len(columns) == len(keys):
            # Keep the caller's spelling of the column names
            names = list(columns)
        else:
            names = [ColumnName(k) for k in keys]
        rows = [Row({n: _read_value(v) for n, v in zip(names, record)}) for record in result]
        return Table(table_name, tuple(names), tuple(rows))


def _read_value(value):
    # Binary cells come back in the [BASE64] form dataset files use
    if isinstance(value, (bytes, bytearray, memoryview)):
        return encode_binary(value)
    return value
