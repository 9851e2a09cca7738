# =============================================================================
# tests/test_db.py - Connection Pool and Startup Retry Tests
# =============================================================================

import sqlite3

import pytest

from user_crud_api.app.core.db import (
    ConnectionPool,
    Dialect,
    SQLITE_USERS_TABLE,
    connect_with_retry,
    get_database_path,
    resolve_dialect,
    sqlite_dialect,
)
from user_crud_api.app.core.errors import DatabaseConnectionError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def flaky_dialect(tmp_path, failures):
    """A SQLite dialect whose first ``failures`` connects raise."""
    calls = {"count": 0}

    def connect():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise sqlite3.OperationalError("unable to open database file")
        return sqlite3.connect(str(tmp_path / "flaky.db"), check_same_thread=False)

    dialect = Dialect(
        name="sqlite",
        connect=connect,
        placeholder="?",
        users_table_ddl=SQLITE_USERS_TABLE,
        errors=(sqlite3.Error,),
        returning=False,
    )
    return dialect, calls


class TestConnectionPool:
    def test_reuses_idle_connection(self, sqlite_settings):
        pool = ConnectionPool(sqlite_dialect(sqlite_settings))
        with pool.connection() as first:
            pass
        with pool.connection() as second:
            pass
        assert first is second
        assert pool.idle_count == 1
        pool.close()

    def test_max_idle_zero_closes_returned_connections(self, sqlite_settings):
        pool = ConnectionPool(sqlite_dialect(sqlite_settings), max_idle=0)
        with pool.connection():
            pass
        assert pool.idle_count == 0

    def test_expired_connections_are_replaced(self, sqlite_settings):
        clock = FakeClock()
        pool = ConnectionPool(sqlite_dialect(sqlite_settings), max_lifetime=10, clock=clock)
        with pool.connection() as first:
            pass
        clock.now = 11
        with pool.connection() as second:
            pass
        assert first is not second
        pool.close()

    def test_error_discards_connection_and_rolls_back(self, sqlite_settings):
        pool = ConnectionPool(sqlite_dialect(sqlite_settings))
        with pool.connection() as conn:
            conn.execute(SQLITE_USERS_TABLE)

        with pytest.raises(sqlite3.IntegrityError):
            with pool.connection() as conn:
                conn.execute("INSERT INTO users (name, age, sex) VALUES ('a', 1, 'F')")
                conn.execute("INSERT INTO users (name, age, sex) VALUES (NULL, 1, 'F')")
        assert pool.idle_count == 0

        with pool.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0
        pool.close()

    def test_closed_pool_rejects_borrowers(self, sqlite_settings):
        pool = ConnectionPool(sqlite_dialect(sqlite_settings))
        pool.close()
        with pytest.raises(RuntimeError):
            with pool.connection():
                pass

    def test_max_open_must_be_positive(self, sqlite_settings):
        with pytest.raises(ValueError):
            ConnectionPool(sqlite_dialect(sqlite_settings), max_open=0)


class TestConnectWithRetry:
    def test_succeeds_after_transient_failures(self, tmp_path, sqlite_settings):
        dialect, calls = flaky_dialect(tmp_path, failures=2)
        sleeps = []
        settings = sqlite_settings
        settings.db_connect_attempts = 5
        settings.db_connect_backoff = 1.5

        pool = connect_with_retry(settings, dialect=dialect, sleep=sleeps.append)

        assert calls["count"] == 3
        assert sleeps == [1.5, 1.5]
        assert pool.idle_count == 1
        pool.close()

    def test_gives_up_after_fixed_attempts(self, tmp_path, sqlite_settings):
        dialect, calls = flaky_dialect(tmp_path, failures=100)
        sleeps = []
        settings = sqlite_settings
        settings.db_connect_attempts = 3
        settings.db_connect_backoff = 2.0

        with pytest.raises(DatabaseConnectionError) as excinfo:
            connect_with_retry(settings, dialect=dialect, sleep=sleeps.append)

        assert calls["count"] == 3
        assert sleeps == [2.0, 2.0]
        assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)


def test_relative_database_path_is_resolved(tmp_path):
    assert get_database_path(str(tmp_path / "a.db")) == str(tmp_path / "a.db")
    assert get_database_path("users.db").endswith("users.db")
    assert get_database_path("users.db") != "users.db"


def test_resolve_dialect_rejects_memory(sqlite_settings):
    sqlite_settings.storage_backend = "memory"
    with pytest.raises(ValueError):
        resolve_dialect(sqlite_settings)


def test_postgres_placeholders(sqlite_settings):
    dialect = Dialect(
        name="postgres",
        connect=lambda: None,
        placeholder="%s",
        users_table_ddl="",
        errors=(Exception,),
        returning=True,
    )
    assert dialect.sql("UPDATE users SET name = ? WHERE id = ?") == "UPDATE users SET name = %s WHERE id = %s"
    assert sqlite_dialect(sqlite_settings).sql("SELECT ?") == "SELECT ?"
