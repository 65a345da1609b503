from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from fixtureforge.identifiers import ColumnName, TableName

ColumnRef = Union[ColumnName, str]
TableRef = Union[TableName, str]


def _column(ref: ColumnRef) -> ColumnName:
    return ref if isinstance(ref, ColumnName) else ColumnName(ref)


def _table(ref: TableRef) -> TableName:
    return ref if isinstance(ref, TableName) else TableName(ref)


@dataclass(frozen=True)
class CellValue:
    value: Optional[Any] = None

    @property
    def is_null(self) -> bool:
        return self.value is None

    def __repr__(self):
        return "CellValue.NULL" if self.value is None else f"CellValue({self.value!r})"

    def to_dict(self):
        return {"value": self.value}


CellValue.NULL = CellValue(None)


def cell(value: Any) -> CellValue:
    """Wrap a raw value, mapping None to the NULL sentinel."""
    if isinstance(value, CellValue):
        return value
    return CellValue.NULL if value is None else CellValue(value)


@dataclass(frozen=True)
class ColumnMetadata:
    sql_type: Optional[str] = None
    nullable: bool = True
    primary_key: bool = False

    def to_dict(self):
        data = {"type": self.sql_type or "UNKNOWN"}
        if self.nullable:
            data["nullable"] = True
        if self.primary_key:
            data["primary_key"] = True
        return data


class Row:
    """Ordered, read-only mapping of column name to cell value."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[ColumnRef, Any]):
        ordered: Dict[ColumnName, CellValue] = {}
        for column, value in values.items():
            ordered[_column(column)] = cell(value)
        self._values = MappingProxyType(ordered)

    @property
    def values(self) -> Mapping[ColumnName, CellValue]:
        return self._values

    @property
    def columns(self) -> List[ColumnName]:
        return list(self._values.keys())

    def get_value(self, column: ColumnRef) -> Optional[CellValue]:
        return self._values.get(_column(column))

    def __getitem__(self, column: ColumnRef) -> CellValue:
        return self._values[_column(column)]

    def __contains__(self, column) -> bool:
        return _column(column) in self._values

    def __iter__(self) -> Iterator[ColumnName]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other):
        if not isinstance(other, Row):
            return NotImplemented
        return list(self._values.items()) == list(other._values.items())

    def __hash__(self):
        return hash(tuple(self._values.items()))

    def __repr__(self):
        inner = ", ".join(f"{c.value}={v.value!r}" for c, v in self._values.items())
        return f"Row({inner})"

    def project(self, columns: Sequence[ColumnName]) -> "Row":
        """Return a row restricted to the given columns, NULL-filling absent ones."""
        return Row({c: self._values.get(c, CellValue.NULL) for c in columns})

    def to_dict(self):
        return {c.value: v.value for c, v in self._values.items()}


@dataclass(frozen=True)
class Table:
    name: TableName
    columns: Tuple[ColumnName, ...] = ()
    rows: Tuple[Row, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "name", _table(self.name))
        columns = tuple(_column(c) for c in self.columns)
        if len(set(columns)) != len(columns):
            raise ValueError(f"Duplicate column names in table {self.name.value}: {[c.value for c in columns]}")
        rows = tuple(self.rows)
        expected = set(columns)
        for index, row in enumerate(rows):
            if set(row.columns) != expected or len(row) != len(columns):
                raise ValueError(
                    f"Row {index} of table {self.name.value} has columns {[c.value for c in row.columns]}, "
                    f"expected {[c.value for c in columns]}"
                )
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "rows", rows)

    @classmethod
    def of(cls, name: TableRef, columns: Sequence[ColumnRef], records: Iterable[Sequence[Any]] = ()) -> "Table":
        column_names = tuple(_column(c) for c in columns)
        rows = []
        for record in records:
            if len(record) != len(column_names):
                raise ValueError(
                    f"Record {record!r} has {len(record)} values, expected {len(column_names)}"
                )
            rows.append(Row(dict(zip(column_names, record))))
        return cls(_table(name), column_names, tuple(rows))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def get_column(self, name: ColumnRef) -> Optional[ColumnName]:
        target = _column(name)
        for col in self.columns:
            if col == target:
                return col
        return None

    def with_rows(self, rows: Iterable[Row]) -> "Table":
        return Table(self.name, self.columns, tuple(rows))

    def records(self) -> List[Tuple[Any, ...]]:
        """Raw values of every row, in column order."""
        return [tuple(row[c].value for c in self.columns) for row in self.rows]

    def to_dict(self):
        return {
            "name": self.name.value,
            "columns": [c.value for c in self.columns],
            "rows": [r.to_dict() for r in self.rows],
        }


@dataclass(frozen=True)
class TableSet:
    tables: Tuple[Table, ...] = field(default_factory=tuple)

    def __post_init__(self):
        tables = tuple(self.tables)
        seen = set()
        for table in tables:
            if table.name in seen:
                raise ValueError(f"Duplicate table name in table set: {table.name.value}")
            seen.add(table.name)
        object.__setattr__(self, "tables", tables)

    @property
    def table_names(self) -> List[TableName]:
        return [t.name for t in self.tables]

    def get_table(self, name: TableRef) -> Optional[Table]:
        target = _table(name)
        for table in self.tables:
            if table.name == target:
                return table
        return None

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    def to_dict(self):
        return {"tables": [t.to_dict() for t in self.tables]}
