"""
Operation executor tests against a file-backed SQLite database.
"""
import pytest
from sqlalchemy import text

from fixtureforge.constants import Operation, TableOrderingStrategy
from fixtureforge.exceptions import DatabaseOperationError, DatabaseTesterError
from fixtureforge.executors import TruncateExecutor
from fixtureforge.models import Table, TableSet
from fixtureforge.operation_executor import OperationExecutor


def items(*records, columns=("id", "name")):
    return TableSet((Table.of("items", list(columns), list(records)),))


def company(departments, employees):
    # Children listed before parents on purpose
    return TableSet((
        Table.of("employees", ["id", "name", "dept_id"], employees),
        Table.of("departments", ["id", "name"], departments),
    ))


@pytest.fixture
def executor():
    return OperationExecutor()


class TestBasicOperations:
    """Test each operation's effect on table contents."""

    def test_insert(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a"), ("2", "b")), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items ORDER BY id") == [(1, "a"), (2, "b")]

    def test_clean_insert_then_refresh(self, company_db, executor, fetch_all):
        executor.execute(Operation.CLEAN_INSERT, items(("1", "A")), company_db)
        executor.execute(Operation.REFRESH, items(("1", "B"), ("2", "C")), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items ORDER BY id") == [(1, "B"), (2, "C")]

    def test_refresh_is_idempotent(self, company_db, executor, fetch_all):
        dataset = items(("1", "a"), ("2", "b"))
        executor.execute(Operation.REFRESH, dataset, company_db)
        first = fetch_all(company_db, "SELECT id, name FROM items ORDER BY id")
        executor.execute(Operation.REFRESH, dataset, company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items ORDER BY id") == first

    def test_refresh_keeps_rows_outside_dataset(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("5", "old")), company_db)
        executor.execute(Operation.REFRESH, items(("1", "new")), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items ORDER BY id") == [(1, "new"), (5, "old")]

    def test_refresh_single_column_table(self, sqlite_engine, executor, fetch_all):
        with sqlite_engine.begin() as conn:
            conn.execute(text("CREATE TABLE tags (code VARCHAR(10) PRIMARY KEY)"))
        dataset = TableSet((Table.of("tags", ["code"], [("x",), ("y",)]),))
        executor.execute(Operation.REFRESH, dataset, sqlite_engine)
        executor.execute(Operation.REFRESH, dataset, sqlite_engine)
        assert fetch_all(sqlite_engine, "SELECT code FROM tags ORDER BY code") == [("x",), ("y",)]

    def test_update_skips_unmatched_keys(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a"), ("2", "b")), company_db)
        executor.execute(Operation.UPDATE, items(("2", "B"), ("9", "ghost")), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items ORDER BY id") == [(1, "a"), (2, "B")]

    def test_update_with_key_only_is_noop(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a")), company_db)
        executor.execute(Operation.UPDATE, items(("1",), columns=("id",)), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items") == [(1, "a")]

    def test_delete_by_key(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a"), ("2", "b"), ("3", "c")), company_db)
        executor.execute(Operation.DELETE, items(("2", "ignored")), company_db)
        assert fetch_all(company_db, "SELECT id FROM items ORDER BY id") == [(1,), (3,)]

    def test_delete_all(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a"), ("2", "b")), company_db)
        executor.execute(Operation.DELETE_ALL, items(), company_db)
        assert fetch_all(company_db, "SELECT COUNT(*) FROM items") == [(0,)]

    def test_truncate_falls_back_to_delete(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a")), company_db)
        executor.execute(Operation.TRUNCATE_TABLE, items(), company_db)
        assert fetch_all(company_db, "SELECT COUNT(*) FROM items") == [(0,)]

    def test_truncate_outcome_is_degraded_on_sqlite(self, company_db):
        with company_db.begin() as conn:
            outcomes = TruncateExecutor(conn).execute([Table.of("items", ["id"])])
        assert len(outcomes) == 1
        assert outcomes[0].is_degraded
        assert "sqlite" in outcomes[0].fallback_reason

    def test_truncate_insert(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a"), ("2", "b")), company_db)
        executor.execute(Operation.TRUNCATE_INSERT, items(("3", "c")), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items") == [(3, "c")]

    def test_none_does_nothing(self, company_db, executor, fetch_all):
        executor.execute(Operation.NONE, items(("1", "a")), company_db)
        assert fetch_all(company_db, "SELECT COUNT(*) FROM items") == [(0,)]

    def test_empty_tables_skipped(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(), company_db)
        executor.execute(Operation.REFRESH, items(), company_db)
        assert fetch_all(company_db, "SELECT COUNT(*) FROM items") == [(0,)]

    def test_null_cells_inserted_as_null(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", None)), company_db)
        assert fetch_all(company_db, "SELECT id, name FROM items") == [(1, None)]


class TestForeignKeyOrdering:
    """Test that writes respect foreign keys without an explicit order."""

    def test_clean_insert_orders_parents_first(self, company_db, executor, fetch_all):
        dataset = company([("1", "sales")], [("10", "alice", "1")])
        executor.execute(Operation.CLEAN_INSERT, dataset, company_db)
        # A second run must delete children before parents
        executor.execute(Operation.CLEAN_INSERT, dataset, company_db)
        assert fetch_all(company_db, "SELECT id, name, dept_id FROM employees") == [(10, "alice", 1)]
        assert fetch_all(company_db, "SELECT id, name FROM departments") == [(1, "sales")]

    def test_load_order_strategy_keeps_given_order(self, company_db, executor):
        dataset = company([("1", "sales")], [("10", "alice", "1")])
        with pytest.raises(DatabaseTesterError):
            executor.execute(Operation.INSERT, dataset, company_db, TableOrderingStrategy.LOAD_ORDER_FILE)


class TestTransactions:
    """Test all-or-nothing behavior."""

    def test_failure_rolls_back_everything(self, company_db, executor, fetch_all):
        dataset = TableSet((
            Table.of("items", ["id", "name"], [("1", "a")]),
            Table.of("items_missing", ["id"], [("1",)]),
        ))
        with pytest.raises(DatabaseTesterError) as excinfo:
            executor.execute(Operation.INSERT, dataset, company_db, TableOrderingStrategy.LOAD_ORDER_FILE)

        assert str(excinfo.value) == "Failed to execute operation INSERT"
        cause = excinfo.value.__cause__
        assert isinstance(cause, DatabaseOperationError)
        assert cause.sql == "INSERT INTO items_missing (id) VALUES (:p1)"
        assert fetch_all(company_db, "SELECT COUNT(*) FROM items") == [(0,)]

    def test_constraint_violation_rolls_back(self, company_db, executor, fetch_all):
        executor.execute(Operation.INSERT, items(("1", "a")), company_db)
        with pytest.raises(DatabaseTesterError):
            executor.execute(Operation.INSERT, items(("2", "b"), ("1", "duplicate")), company_db)
        assert fetch_all(company_db, "SELECT id FROM items ORDER BY id") == [(1,)]


class TestTypeCoercion:
    """Test that text cells reach the database as typed values."""

    def test_typed_columns(self, sqlite_engine, executor, fetch_all):
        with sqlite_engine.begin() as conn:
            conn.execute(text(
                "CREATE TABLE events ("
                "id INTEGER PRIMARY KEY, active BOOLEAN, day DATE, "
                "happened_at DATETIME, payload BLOB, score FLOAT)"
            ))
        dataset = TableSet((Table.of(
            "events",
            ["id", "active", "day", "happened_at", "payload", "score"],
            [("1", "yes", "2024-01-15", "2024-01-15 10:30:00", "[BASE64]aGVsbG8=", "2.5")],
        ),))
        executor.execute(Operation.INSERT, dataset, sqlite_engine)

        rows = fetch_all(sqlite_engine, "SELECT id, active, day, happened_at, payload, score FROM events")
        assert len(rows) == 1
        event_id, active, day, happened_at, payload, score = rows[0]
        assert (event_id, active, day, score) == (1, 1, "2024-01-15", 2.5)
        assert happened_at.startswith("2024-01-15 10:30:00")
        assert payload == b"hello"

    def test_unparseable_value_bound_raw(self, sqlite_engine, executor, fetch_all):
        with sqlite_engine.begin() as conn:
            conn.execute(text("CREATE TABLE stamps (id INTEGER PRIMARY KEY, at DATETIME)"))
        dataset = TableSet((Table.of("stamps", ["id", "at"], [("1", "sometime")]),))
        executor.execute(Operation.INSERT, dataset, sqlite_engine)
        assert fetch_all(sqlite_engine, "SELECT id, at FROM stamps") == [(1, "sometime")]
