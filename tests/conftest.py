import sqlite3

import pytest
from datapacket.adapters.column_info import ColumnDescriptor
from datapacket.config.naming import NamingConfig


@pytest.fixture(autouse=True)
def isolated_naming_config():
    """Install an empty naming configuration so no file on disk leaks into tests."""
    NamingConfig._instance = NamingConfig(search_defaults=False)
    yield NamingConfig._instance
    NamingConfig.reset_instance()


@pytest.fixture
def user_descriptors():
    """Column descriptors for the canonical user result set."""
    return [
        ColumnDescriptor('User_ID', int, None, False),
        ColumnDescriptor('User_NM', str, 50, False),
        ColumnDescriptor('Is_Active', bool, None, False),
        ColumnDescriptor('Signup_DT', 'datetime', None, True),
    ]


class RecordingCursor:
    """DB-API style cursor double that records close() and can fail on demand.
    """

    def __init__(self, description, rows, fail_after=None, error=None):
        self.description = description
        self._rows = list(rows)
        self._fail_after = fail_after
        self._error = error or RuntimeError('connection dropped')
        self._served = 0
        self.closed = False

    def fetchmany(self, size):
        if self._fail_after is not None and self._served >= self._fail_after:
            raise self._error
        limit = size
        if self._fail_after is not None:
            limit = min(size, self._fail_after - self._served)
        chunk = self._rows[self._served:self._served + limit]
        self._served += len(chunk)
        return chunk

    def close(self):
        self.closed = True


@pytest.fixture
def recording_cursor():
    """Factory for RecordingCursor instances."""
    def factory(description, rows, fail_after=None, error=None):
        return RecordingCursor(description, rows, fail_after=fail_after, error=error)
    return factory


@pytest.fixture
def sqlite_conn():
    """In-memory SQLite database with a small users table."""
    conn = sqlite3.connect(':memory:')
    conn.executescript("""
    CREATE TABLE users (
        User_ID INTEGER PRIMARY KEY,
        User_NM TEXT NOT NULL,
        Is_Active BOOLEAN NOT NULL,
        Signup_DT TEXT,
        Balance_AMT NUMERIC NOT NULL DEFAULT 0
    );
    INSERT INTO users (User_ID, User_NM, Is_Active, Signup_DT, Balance_AMT) VALUES
        (1, 'Ann', 1, '2024-01-15', 1500),
        (2, 'Bob', 0, NULL, 250.5),
        (3, 'Cy', 1, '2024-03-02', 0);
    CREATE TABLE payments (
        User_ID INTEGER NOT NULL,
        Amount_AMT NUMERIC NOT NULL
    );
    CREATE TRIGGER payments_balance BEFORE INSERT ON payments
    WHEN NEW.Amount_AMT > (SELECT Balance_AMT FROM users WHERE User_ID = NEW.User_ID)
    BEGIN
        SELECT RAISE(ABORT, 'insufficient balance');
    END;
    """)
    yield conn
    conn.close()
