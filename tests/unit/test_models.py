"""
Tests for identifiers and the tabular data model.
"""
import pytest

from fixtureforge.identifiers import (
    ColumnName,
    DataSourceName,
    ScenarioMarker,
    ScenarioName,
    SchemaName,
    TableName,
    normalize_identifier,
)
from fixtureforge.models import CellValue, ColumnMetadata, Row, Table, TableSet, cell


class TestIdentifiers:
    """Test validated identifier value types."""

    def test_value_is_trimmed(self):
        assert TableName("  users ").value == "users"

    def test_blank_rejected(self):
        with pytest.raises(ValueError):
            TableName("   ")

    def test_non_string_rejected(self):
        with pytest.raises(ValueError):
            ColumnName(42)

    def test_table_names_case_insensitive(self):
        assert TableName("users") == TableName("USERS")
        assert hash(TableName("users")) == hash(TableName("Users"))

    def test_column_names_case_insensitive(self):
        assert ColumnName("name") == ColumnName("NAME")

    def test_scenario_names_case_sensitive(self):
        assert ScenarioName("smoke") != ScenarioName("SMOKE")

    def test_schema_and_data_source_case_sensitive(self):
        assert SchemaName("app") != SchemaName("APP")
        assert DataSourceName("primary") != DataSourceName("Primary")

    def test_marker_default(self):
        assert ScenarioMarker().value == "[Scenario]"

    def test_ordering_is_lexicographic(self):
        names = sorted([TableName("orders"), TableName("Users"), TableName("accounts")])
        assert [n.value for n in names] == ["Users", "accounts", "orders"]

    def test_normalize_unwraps_identifier(self):
        assert normalize_identifier(TableName("users"), "Table name") == "users"

    def test_str(self):
        assert str(ColumnName("email")) == "email"


class TestCellValue:
    """Test cell values and the NULL sentinel."""

    def test_null_sentinel(self):
        assert CellValue.NULL.is_null
        assert cell(None) is CellValue.NULL

    def test_wraps_value(self):
        assert cell("x").value == "x"
        assert not cell(0).is_null

    def test_cell_is_idempotent(self):
        value = CellValue(5)
        assert cell(value) is value


class TestRow:
    """Test row lookups."""

    def test_lookup_is_case_insensitive(self):
        row = Row({"Name": "alice"})
        assert row["NAME"].value == "alice"
        assert row.get_value(ColumnName("name")).value == "alice"

    def test_absent_column_distinct_from_null(self):
        row = Row({"a": None})
        assert row.get_value("a") is CellValue.NULL
        assert row.get_value("b") is None

    def test_row_is_read_only(self):
        row = Row({"a": 1})
        with pytest.raises(TypeError):
            row.values[ColumnName("a")] = CellValue(2)

    def test_project_fills_null(self):
        row = Row({"a": 1})
        projected = row.project([ColumnName("a"), ColumnName("b")])
        assert projected.columns == [ColumnName("a"), ColumnName("b")]
        assert projected["b"] is CellValue.NULL

    def test_equality(self):
        assert Row({"a": 1, "b": "x"}) == Row({"A": 1, "B": "x"})
        assert Row({"a": 1}) != Row({"a": 2})


class TestTable:
    """Test table construction invariants."""

    def test_of_builds_rows(self):
        table = Table.of("users", ["id", "name"], [(1, "a"), (2, None)])
        assert table.row_count == 2
        assert table.rows[1]["name"] is CellValue.NULL
        assert table.records() == [(1, "a"), (2, None)]

    def test_row_columns_must_match(self):
        with pytest.raises(ValueError):
            Table(TableName("users"), (ColumnName("id"),), (Row({"other": 1}),))

    def test_duplicate_columns_rejected(self):
        with pytest.raises(ValueError):
            Table.of("users", ["id", "ID"], [])

    def test_record_length_checked(self):
        with pytest.raises(ValueError):
            Table.of("users", ["id", "name"], [(1,)])

    def test_get_column(self):
        table = Table.of("users", ["id", "Name"])
        assert table.get_column("NAME").value == "Name"
        assert table.get_column("missing") is None

    def test_to_dict(self):
        table = Table.of("users", ["id"], [(1,)])
        assert table.to_dict() == {"name": "users", "columns": ["id"], "rows": [{"id": 1}]}


class TestTableSet:
    """Test table set lookups."""

    def test_get_table(self):
        table_set = TableSet((Table.of("users", ["id"]), Table.of("orders", ["id"])))
        assert table_set.get_table("USERS").name.value == "users"
        assert table_set.get_table("missing") is None
        assert [t.value for t in table_set.table_names] == ["users", "orders"]
        assert len(table_set) == 2

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            TableSet((Table.of("users", ["id"]), Table.of("USERS", ["id"])))


class TestColumnMetadata:
    def test_to_dict(self):
        assert ColumnMetadata("VARCHAR(50)", nullable=True).to_dict() == {"type": "VARCHAR(50)", "nullable": True}
        assert ColumnMetadata("INTEGER", nullable=False, primary_key=True).to_dict() == {
            "type": "INTEGER",
            "primary_key": True,
        }
