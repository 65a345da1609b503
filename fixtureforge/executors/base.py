from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError

from fixtureforge.binder import ParameterBinder
from fixtureforge.exceptions import DatabaseOperationError
from fixtureforge.identifiers import TableName
from fixtureforge.introspector import DBIntrospector
from fixtureforge.logging_config import get_logger
from fixtureforge.models import Table
from fixtureforge.sql_builder import BuiltStatement, SqlBuilder


class TableExecutor(ABC):
    """
    Applies one kind of write to a list of tables on an open connection.

    Executors never commit or roll back; the caller owns the transaction.
    Failing SQL raises DatabaseOperationError with the statement attached.
    """

    def __init__(self, connection: Connection, schema: Optional[str] = None,
                 introspector: Optional[DBIntrospector] = None):
        self.connection = connection
        self.schema = schema
        self.builder = SqlBuilder(schema)
        self._introspector = introspector
        self._binders: Dict[TableName, ParameterBinder] = {}
        self.logger = get_logger(f"executors.{type(self).__name__}")

    @abstractmethod
    def execute(self, tables: Sequence[Table]) -> Any:
        """Apply the write to every table, in the order given."""
        pass

    @property
    def introspector(self) -> DBIntrospector:
        if self._introspector is None:
            self._introspector = DBIntrospector(self.connection, self.schema)
        return self._introspector

    def binder_for(self, table_name: TableName) -> ParameterBinder:
        if table_name not in self._binders:
            try:
                column_types = self.introspector.column_types(table_name.value)
            except SQLAlchemyError as e:
                self.logger.debug(
                    f"Column types unavailable, binding values untyped: {e}",
                    extra={"table_name": table_name.value},
                )
                column_types = {}
            self._binders[table_name] = ParameterBinder(column_types)
        return self._binders[table_name]

    @staticmethod
    def has_data(table: Table) -> bool:
        return table.row_count > 0 and len(table.columns) > 0

    def run(self, table_name: TableName, statement: BuiltStatement, clause=None,
            params: Optional[List[Dict[str, Any]]] = None) -> CursorResult:
        """Execute a statement, as executemany when params holds several rows."""
        self.logger.debug(
            f"Executing: {statement.sql} ({len(params) if params else 0} parameter sets)",
            extra={"table_name": table_name.value},
        )
        if clause is None:
            clause = statement.to_text()
        try:
            if not params:
                return self.connection.execute(clause)
            if len(params) == 1:
                return self.connection.execute(clause, params[0])
            return self.connection.execute(clause, params)
        except SQLAlchemyError as e:
            raise DatabaseOperationError(
                f"Failed to execute statement on table {table_name.value}: {e}",
                sql=statement.sql,
            ) from e
