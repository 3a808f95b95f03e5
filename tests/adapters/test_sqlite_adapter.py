import sqlite3

import pytest

from forgeorm.adapters import (
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    ConstraintViolationError,
    ObjectNotFoundError,
    SQLiteAdapter,
)


@pytest.fixture
def adapter(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'test.db'}"))
    yield adapter
    adapter.close()


def test_connect_creates_database(tmp_path):
    adapter = SQLiteAdapter()
    connection = adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'connect.db'}"))
    assert isinstance(connection, sqlite3.Connection)
    assert adapter.is_connected
    assert (tmp_path / "connect.db").exists()
    adapter.close()
    adapter.close()
    assert not adapter.is_connected


def test_execute_requires_connection():
    with pytest.raises(AdapterConnectionError):
        SQLiteAdapter().execute("SELECT 1")


def test_execute_returns_insert_id_and_rows(adapter):
    adapter.execute("CREATE TABLE example (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    result = adapter.execute("INSERT INTO example (name) VALUES (?)", ("Alice",))
    assert result.insert_id == 1
    assert result.affected_rows == 1

    selected = adapter.execute("SELECT id, name FROM example WHERE id = ?", (result.insert_id,))
    assert selected.rows == [{"id": 1, "name": "Alice"}]
    assert selected.first() == {"id": 1, "name": "Alice"}
    assert adapter.execute("SELECT COUNT(*) AS total FROM example").scalar() == 1


def test_errors_are_translated(adapter):
    adapter.execute("CREATE TABLE person (id INTEGER PRIMARY KEY, email TEXT UNIQUE)")
    adapter.execute("INSERT INTO person (email) VALUES (?)", ("a@example.com",))

    with pytest.raises(ConstraintViolationError) as excinfo:
        adapter.execute("INSERT INTO person (email) VALUES (?)", ("a@example.com",))
    assert excinfo.value.sql.startswith("INSERT INTO person")
    assert excinfo.value.params == ["a@example.com"]

    with pytest.raises(ObjectNotFoundError):
        adapter.execute("SELECT * FROM missing")

    with pytest.raises(AdapterExecutionError):
        adapter.execute("SELEC nonsense")


def test_transaction_commit_and_rollback(adapter):
    adapter.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, value INTEGER)")

    adapter.begin()
    assert adapter.in_transaction
    adapter.execute("INSERT INTO item (value) VALUES (?)", (10,))
    adapter.commit()
    assert adapter.execute("SELECT COUNT(*) FROM item").scalar() == 1

    adapter.begin()
    adapter.execute("INSERT INTO item (value) VALUES (?)", (20,))
    adapter.rollback()
    assert not adapter.in_transaction
    assert adapter.execute("SELECT COUNT(*) FROM item").scalar() == 1


def test_isolation_level_selects_begin_mode(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'iso.db'}", isolation_level="IMMEDIATE"))
    adapter.begin()
    assert adapter.in_transaction
    adapter.rollback()
    adapter.close()


def test_foreign_keys_pragma_follows_config():
    enabled = SQLiteAdapter()
    enabled.connect(ConnectionConfig())
    assert enabled.execute("PRAGMA foreign_keys").scalar() == 1
    enabled.close()

    disabled = SQLiteAdapter()
    disabled.connect(ConnectionConfig(foreign_keys=False))
    assert disabled.execute("PRAGMA foreign_keys").scalar() == 0
    disabled.close()


def test_in_memory_database():
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url="sqlite:///:memory:"))
    adapter.execute("CREATE TABLE sample (value TEXT)")
    adapter.execute("INSERT INTO sample (value) VALUES (?)", ("hello",))
    assert adapter.execute("SELECT value FROM sample").scalar() == "hello"
    adapter.close()
