import pytest
from sqlalchemy import create_engine, event, text


@pytest.fixture
def sqlite_engine(tmp_path):
    """File-backed SQLite engine with foreign key enforcement switched on."""
    engine = create_engine(f"sqlite:///{tmp_path / 'fixtures.db'}")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()


@pytest.fixture
def company_db(sqlite_engine):
    """departments <- employees, plus a standalone items table."""
    with sqlite_engine.begin() as conn:
        conn.execute(text("CREATE TABLE departments (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL)"))
        conn.execute(text(
            "CREATE TABLE employees ("
            "id INTEGER PRIMARY KEY, "
            "name VARCHAR(50), "
            "dept_id INTEGER REFERENCES departments(id))"
        ))
        conn.execute(text("CREATE TABLE items (id INTEGER PRIMARY KEY, name VARCHAR(50))"))
    return sqlite_engine


@pytest.fixture
def fetch_all():
    """Run a query and return plain tuples."""
    def _fetch(engine, sql):
        with engine.connect() as conn:
            return [tuple(r) for r in conn.execute(text(sql))]
    return _fetch
