from typing import Dict, Iterable, Optional, Set

from sqlalchemy import inspect, types as sqltypes
from sqlalchemy.exc import CompileError
from sqlalchemy.engine import Connection

from fixtureforge.constants import SqlTypeCategory
from fixtureforge.identifiers import TableName
from fixtureforge.models import ColumnMetadata


def categorize_type(col_type) -> SqlTypeCategory:
    """Reduce a reflected SQLAlchemy type to the family used for coercion."""
    # Order matters: subclasses before their bases
    if isinstance(col_type, sqltypes.Boolean):
        return SqlTypeCategory.BOOLEAN
    if isinstance(col_type, sqltypes.BigInteger):
        return SqlTypeCategory.BIGINT
    if isinstance(col_type, sqltypes.Integer):
        return SqlTypeCategory.INTEGER
    if isinstance(col_type, sqltypes.Double):
        return SqlTypeCategory.DOUBLE
    if isinstance(col_type, sqltypes.Float):
        return SqlTypeCategory.FLOAT
    if isinstance(col_type, sqltypes.Numeric):
        return SqlTypeCategory.DECIMAL
    if isinstance(col_type, sqltypes.DateTime):
        return SqlTypeCategory.TIMESTAMP
    if isinstance(col_type, sqltypes.Date):
        return SqlTypeCategory.DATE
    if isinstance(col_type, sqltypes.Time):
        return SqlTypeCategory.TIME
    if isinstance(col_type, (sqltypes.LargeBinary, sqltypes.BINARY, sqltypes.VARBINARY)):
        return SqlTypeCategory.BINARY
    return SqlTypeCategory.OTHER


def type_name(col_type) -> str:
    try:
        return str(col_type)
    except CompileError:
        # NullType and dialect-only types have no generic rendering
        return type(col_type).__name__.upper()


class DBIntrospector:
    """Reads table metadata from a live connection through the SQLAlchemy inspector."""

    def __init__(self, connection: Connection, schema: Optional[str] = None):
        self.connection = connection
        self.schema = schema
        self.inspector = inspect(connection)

    def foreign_key_dependencies(self, table_names: Iterable[TableName]) -> Dict[TableName, Set[TableName]]:
        """
        Map each table to the in-scope tables it references.

        Self references and references to tables outside table_names are
        dropped. Tables without dependencies are omitted.
        """
        in_scope = list(table_names)
        by_key = {t: t for t in in_scope}
        dependencies: Dict[TableName, Set[TableName]] = {}

        for table_name in in_scope:
            referenced = set()
            for fk in self.inspector.get_foreign_keys(table_name.value, schema=self.schema):
                ref_name = fk.get('referred_table')
                if not ref_name:
                    continue
                ref = TableName(ref_name)
                if ref in by_key and ref != table_name:
                    referenced.add(by_key[ref])
            if referenced:
                dependencies[table_name] = referenced

        return dependencies

    def column_types(self, table_name: str) -> Dict[str, object]:
        """Upper-cased column name to reflected SQLAlchemy type instance."""
        columns = self.inspector.get_columns(table_name, schema=self.schema)
        return {col['name'].upper(): col['type'] for col in columns}

    def column_metadata(self, table_name: str) -> Dict[str, ColumnMetadata]:
        """Upper-cased column name to the metadata shown in difference reports."""
        columns = self.inspector.get_columns(table_name, schema=self.schema)
        pk_constraint = self.inspector.get_pk_constraint(table_name, schema=self.schema)
        pk_cols = {c.upper() for c in (pk_constraint or {}).get('constrained_columns') or []}

        metadata = {}
        for col in columns:
            metadata[col['name'].upper()] = ColumnMetadata(
                sql_type=type_name(col['type']),
                nullable=bool(col.get('nullable', True)),
                primary_key=col['name'].upper() in pk_cols,
            )
        return metadata
