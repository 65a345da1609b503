from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from fixtureforge.constants import SAFE_IDENTIFIER
from fixtureforge.identifiers import ColumnName, TableName


def validate_identifier(identifier) -> str:
    """
    Return identifier unchanged if it is safe to interpolate into SQL.

    Only letters, digits and underscores are accepted, with an optional
    single schema qualifier. Anything else raises ValueError.
    """
    if isinstance(identifier, (TableName, ColumnName)):
        identifier = identifier.value
    if not identifier:
        raise ValueError("SQL identifier must not be null or empty")
    if not SAFE_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: '{identifier}'. Identifiers must start with a letter or "
            f"underscore and contain only letters, digits, and underscores."
        )
    return identifier


def qualify(table_name, schema: Optional[str] = None) -> str:
    name = validate_identifier(table_name)
    if schema and "." not in name:
        return f"{validate_identifier(schema)}.{name}"
    return name


@dataclass(frozen=True)
class BuiltStatement:
    """SQL text plus the column bound to each named parameter, in order."""
    sql: str
    parameters: Tuple[Tuple[str, ColumnName], ...] = field(default_factory=tuple)

    def to_text(self, param_types: Optional[Dict[str, object]] = None) -> TextClause:
        """
        Build the executable clause.

        param_types maps upper-cased column names to SQLAlchemy types; only
        listed columns get a typed bind parameter.
        """
        clause = text(self.sql)
        if not param_types:
            return clause
        typed = [
            bindparam(param, type_=param_types[column.value.upper()])
            for param, column in self.parameters
            if column.value.upper() in param_types
        ]
        return clause.bindparams(*typed) if typed else clause


class SqlBuilder:
    """Builds INSERT, UPDATE, DELETE and TRUNCATE statements with named parameters."""

    def __init__(self, schema: Optional[str] = None):
        self.schema = schema

    def build_insert(self, table_name: TableName, columns: Sequence[ColumnName]) -> BuiltStatement:
        params = self._params(columns)
        column_list = ", ".join(validate_identifier(c) for c in columns)
        placeholders = ", ".join(f":{p}" for p, _ in params)
        return BuiltStatement(
            f"INSERT INTO {qualify(table_name, self.schema)} ({column_list}) VALUES ({placeholders})",
            params,
        )

    def build_update(self, table_name: TableName, pk_column: ColumnName,
                     update_columns: Sequence[ColumnName]) -> BuiltStatement:
        params = self._params(list(update_columns) + [pk_column])
        set_clause = ", ".join(
            f"{validate_identifier(column)} = :{param}" for param, column in params[:-1]
        )
        pk_param = params[-1][0]
        return BuiltStatement(
            f"UPDATE {qualify(table_name, self.schema)} SET {set_clause} "
            f"WHERE {validate_identifier(pk_column)} = :{pk_param}",
            params,
        )

    def build_delete(self, table_name: TableName, pk_column: ColumnName) -> BuiltStatement:
        params = self._params([pk_column])
        return BuiltStatement(
            f"DELETE FROM {qualify(table_name, self.schema)} WHERE {validate_identifier(pk_column)} = :{params[0][0]}",
            params,
        )

    def build_exists(self, table_name: TableName, pk_column: ColumnName) -> BuiltStatement:
        params = self._params([pk_column])
        return BuiltStatement(
            f"SELECT 1 FROM {qualify(table_name, self.schema)} WHERE {validate_identifier(pk_column)} = :{params[0][0]}",
            params,
        )

    def build_delete_all(self, table_name: TableName) -> BuiltStatement:
        return BuiltStatement(f"DELETE FROM {qualify(table_name, self.schema)}")

    def build_truncate(self, table_name: TableName) -> BuiltStatement:
        return BuiltStatement(f"TRUNCATE TABLE {qualify(table_name, self.schema)}")

    def build_select(self, table_name: TableName, columns: Sequence[ColumnName] = (),
                     order_by: Sequence[ColumnName] = ()) -> BuiltStatement:
        column_list = ", ".join(validate_identifier(c) for c in columns) if columns else "*"
        sql = f"SELECT {column_list} FROM {qualify(table_name, self.schema)}"
        if order_by:
            sql += " ORDER BY " + ", ".join(validate_identifier(c) for c in order_by)
        return BuiltStatement(sql)

    @staticmethod
    def _params(columns: Sequence[ColumnName]) -> Tuple[Tuple[str, ColumnName], ...]:
        return tuple((f"p{i}", column) for i, column in enumerate(columns, start=1))
