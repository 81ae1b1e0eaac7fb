"""Pytest configuration and shared fixtures."""

import os

# Set env vars before any application modules are imported
os.environ.setdefault("TELEGRAM_TOKEN", "123456:test_token")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from unittest.mock import MagicMock

from db.backends import Backend
from db.config import DatabaseConfig
from db.row import Row


def make_connection(columns=None, rows=()):
    """
    Build a mock DB-API connection whose cursor returns ``rows``.

    ``columns=None`` mimics a statement without a result set.
    """
    conn = MagicMock(name="connection")
    cursor = MagicMock(name="cursor")
    cursor.description = [(c, None, None, None, None, None, None) for c in columns] if columns else None
    cursor.fetchall.return_value = [tuple(r) for r in rows]
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn, cursor


@pytest.fixture
def pg_config():
    """Postgres settings with TLS required."""
    return DatabaseConfig(
        connector="pgsql",
        host="db.internal",
        port=5433,
        database="bot",
        username="bot_user",
        password="s3cret",
        ssl_mode="require",
    )


@pytest.fixture
def mysql_config():
    """MySQL settings without TLS options."""
    return DatabaseConfig(
        connector="mysql",
        host="mysql.internal",
        database="bot",
        username="bot_user",
        password="s3cret",
    )


@pytest.fixture
def user_row():
    """A users row as Postgres decodes it."""
    def _make(telegram_id=42, name="Ada", roles=None, locked=False, id=1):
        return Row(
            ["id", "telegram_id", "name", "roles", "locked"],
            [id, telegram_id, name, roles if roles is not None else [], locked],
        )
    return _make


class FakeDb:
    """
    In-memory stand-in for ConnectionManager used by migration tests.

    Records every statement and keeps schema_migrations versions in a list.
    """

    def __init__(self, backend=Backend.POSTGRES):
        self.backend = backend
        self.versions = []
        self.executed = []

    def raw_query(self, sql):
        self.executed.append(" ".join(sql.split()))
        if sql.startswith("SELECT version FROM schema_migrations"):
            return [Row(["version"], [v]) for v in sorted(self.versions)]
        return []

    def prepared_query(self, sql, parameters=()):
        self.executed.append(sql)
        if sql.startswith("INSERT INTO schema_migrations"):
            self.versions.append(parameters[0])
        elif sql.startswith("DELETE FROM schema_migrations"):
            self.versions.remove(parameters[0])
        return []


@pytest.fixture
def fake_db():
    return FakeDb()


@pytest.fixture
def connection_factory():
    """Factory returning ``(connection, cursor)`` mocks, see make_connection."""
    return make_connection
