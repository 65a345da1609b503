from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional

import yaml

from fixtureforge.binder import encode_binary
from fixtureforge.constants import DATASET_KEY
from fixtureforge.models import ColumnMetadata


def _report_value(value: Any) -> Any:
    """Reduce a cell value to something yaml.safe_dump can render."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return encode_binary(value)
    return str(value)


@dataclass
class Difference:
    path: str
    expected: Any = None
    actual: Any = None
    column: Optional[ColumnMetadata] = None

    def to_dict(self):
        data = {
            "path": self.path,
            "expected": _report_value(self.expected),
            "actual": _report_value(self.actual),
        }
        if self.column is not None:
            data["column"] = self.column.to_dict()
        return data


@dataclass
class TableResult:
    table_name: str
    differences: List[Difference] = field(default_factory=list)

    def to_dict(self):
        return {"differences": [d.to_dict() for d in self.differences]}


@dataclass
class ComparisonResult:
    """Every difference found by one comparison, grouped by table."""
    tables: Dict[str, TableResult] = field(default_factory=dict)

    def add(self, table_name: str, difference: Difference) -> Difference:
        self.tables.setdefault(table_name, TableResult(table_name)).differences.append(difference)
        return difference

    def add_table_count_mismatch(self, expected: int, actual: int):
        return self.add(DATASET_KEY, Difference("table_count", expected, actual))

    def add_missing_table(self, table_name: str):
        return self.add(table_name, Difference("table", "exists", "not found"))

    def add_row_count_mismatch(self, table_name: str, expected: int, actual: int):
        return self.add(table_name, Difference("row_count", expected, actual))

    def add_value_mismatch(self, table_name: str, row_index: int, column: str, expected: Any, actual: Any,
                           metadata: Optional[ColumnMetadata] = None):
        return self.add(table_name, Difference(f"row[{row_index}].{column}", expected, actual, metadata))

    def add_missing_column(self, table_name: str, row_index: int, column: str):
        return self.add(table_name, Difference(f"row[{row_index}].{column}", "exists", "column not found"))

    def merge(self, other: "ComparisonResult") -> "ComparisonResult":
        for table_name, table_result in other.tables.items():
            for difference in table_result.differences:
                self.add(table_name, difference)
        return self

    @property
    def has_differences(self) -> bool:
        return self.difference_count > 0

    @property
    def difference_count(self) -> int:
        return sum(len(t.differences) for t in self.tables.values())

    def to_dict(self):
        return {
            "summary": {
                "status": "FAILED" if self.has_differences else "PASSED",
                "total_differences": self.difference_count,
            },
            "tables": {name: t.to_dict() for name, t in self.tables.items()},
        }

    def summary_line(self) -> str:
        count = self.difference_count
        noun = "difference" if count == 1 else "differences"
        return f"Assertion failed: {count} {noun} in {', '.join(self.tables)}"

    def format_message(self) -> str:
        """Summary line followed by the YAML report."""
        report = yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True)
        return f"{self.summary_line()}\n{report}"
