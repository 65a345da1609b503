"""
Parameter binding.

Dataset files carry text, so string cells are coerced to the Python type
matching the column's declared SQL type before they are bound. A value that
does not parse is bound as-is and left for the driver to judge.
"""

import base64
import binascii
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.sql.elements import TextClause

from fixtureforge.constants import BASE64_PREFIX, TRUE_LITERALS, SqlTypeCategory
from fixtureforge.identifiers import ColumnName
from fixtureforge.introspector import categorize_type
from fixtureforge.models import CellValue, Row
from fixtureforge.sql_builder import BuiltStatement


class CoercionError(ValueError):
    pass


def parse_boolean(text: str) -> bool:
    return text.strip().lower() in TRUE_LITERALS


def parse_date(text: str) -> date:
    date_part = text.strip().split(" ", 1)[0].split("T", 1)[0]
    return datetime.strptime(date_part, "%Y-%m-%d").date()


def parse_time(text: str) -> time:
    value = text.strip()
    if " " in value:
        value = value.split(" ", 1)[1]
    elif "T" in value:
        value = value.split("T", 1)[1]
    value = _truncate_fraction(value)
    fmt = "%H:%M:%S.%f" if "." in value else "%H:%M:%S"
    return datetime.strptime(value, fmt).time()


def parse_timestamp(text: str) -> datetime:
    value = _truncate_fraction(text.strip().replace("T", " ", 1))
    fmt = "%Y-%m-%d %H:%M:%S.%f" if "." in value else "%Y-%m-%d %H:%M:%S"
    return datetime.strptime(value, fmt)


def parse_binary(text: str) -> bytes:
    if text.startswith(BASE64_PREFIX):
        return base64.b64decode(text[len(BASE64_PREFIX):], validate=True)
    return text.encode("utf-8")


def encode_binary(value) -> str:
    """Render binary data the way dataset files spell it."""
    return BASE64_PREFIX + base64.b64encode(bytes(value)).decode("ascii")


def _truncate_fraction(value: str) -> str:
    # datetime only carries microseconds
    if "." not in value:
        return value
    head, fraction = value.rsplit(".", 1)
    return f"{head}.{fraction[:6]}"


_PARSERS: Dict[SqlTypeCategory, Callable[[str], Any]] = {
    SqlTypeCategory.BOOLEAN: parse_boolean,
    SqlTypeCategory.INTEGER: lambda s: int(s.strip()),
    SqlTypeCategory.BIGINT: lambda s: int(s.strip()),
    SqlTypeCategory.FLOAT: lambda s: float(s.strip()),
    SqlTypeCategory.DOUBLE: lambda s: float(s.strip()),
    SqlTypeCategory.DECIMAL: lambda s: Decimal(s.strip()),
    SqlTypeCategory.DATE: parse_date,
    SqlTypeCategory.TIME: parse_time,
    SqlTypeCategory.TIMESTAMP: parse_timestamp,
    SqlTypeCategory.BINARY: parse_binary,
}


def coerce(value: Any, category: SqlTypeCategory) -> Any:
    """
    Convert a string to the Python type for category.

    Raises CoercionError when the text does not parse. Non-string values
    and the OTHER category are returned untouched.
    """
    if not isinstance(value, str):
        return value
    parser = _PARSERS.get(category)
    if parser is None:
        return value
    try:
        return parser(value)
    except (ValueError, ArithmeticError, binascii.Error) as e:
        raise CoercionError(f"Cannot convert {value!r} to {category.value}: {e}") from e


class ParameterBinder:
    """Turns dataset rows into parameter dictionaries for a built statement."""

    def __init__(self, column_types: Optional[Mapping[str, Any]] = None):
        # upper-cased column name -> reflected SQLAlchemy type
        self.column_types = dict(column_types or {})

    def category(self, column: ColumnName) -> SqlTypeCategory:
        col_type = self.column_types.get(column.value.upper())
        if col_type is None:
            return SqlTypeCategory.OTHER
        return categorize_type(col_type)

    def convert(self, column: ColumnName, cell_value: CellValue) -> Tuple[Any, bool]:
        """Return (bound value, whether coercion succeeded)."""
        raw = cell_value.value
        try:
            return coerce(raw, self.category(column)), True
        except CoercionError:
            return raw, False

    def bind(self, statement: BuiltStatement, rows: Sequence[Row]) -> Tuple[TextClause, List[Dict[str, Any]]]:
        """
        Build the clause and one parameter dict per row.

        A column's reflected type is attached to its bind parameter only if
        every value in that column coerced and the type belongs to a known
        category.
        """
        params_list: List[Dict[str, Any]] = []
        clean = {param: True for param, _ in statement.parameters}

        for row in rows:
            params = {}
            for param, column in statement.parameters:
                value, ok = self.convert(column, row.get_value(column) or CellValue.NULL)
                params[param] = value
                if not ok:
                    clean[param] = False
            params_list.append(params)

        typed = {}
        for param, column in statement.parameters:
            key = column.value.upper()
            if clean[param] and key in self.column_types and self.category(column) != SqlTypeCategory.OTHER:
                typed[key] = self.column_types[key]

        return statement.to_text(typed), params_list
