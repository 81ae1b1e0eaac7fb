"""
Live database tests.

Skipped unless TEST_DB_CONNECTOR is set. Configure the target with the
usual variables prefixed by TEST_, e.g.:

    TEST_DB_CONNECTOR=pgsql TEST_DB_HOST=localhost TEST_DB_DATABASE=bot_test \
    TEST_DB_USERNAME=bot TEST_DB_PASSWORD=bot pytest tests/test_integration.py
"""

import dataclasses
import os

import pytest

from db.config import DatabaseConfig
from db.connection import ConnectionManager

pytestmark = pytest.mark.skipif(
    not os.getenv("TEST_DB_CONNECTOR"), reason="TEST_DB_CONNECTOR not set"
)

TABLE = "it_users"


@pytest.fixture(scope="module")
def live_config():
    prefix = "TEST_"
    return DatabaseConfig.from_env(
        {k[len(prefix):]: v for k, v in os.environ.items() if k.startswith(prefix + "DB_")}
    )


@pytest.fixture
def db(live_config):
    manager = ConnectionManager(live_config)
    manager.raw_query(f"DROP TABLE IF EXISTS {TABLE}")
    manager.raw_query(
        f"CREATE TABLE {TABLE} (name VARCHAR(255) NOT NULL, telegram_id BIGINT NOT NULL)"
    )
    yield manager
    manager.raw_query(f"DROP TABLE IF EXISTS {TABLE}")
    manager.close()


class TestLiveDatabase:
    """Round trips against a real server."""

    def test_select_one(self, db):
        rows = db.raw_query("SELECT 1 AS one")

        assert len(rows) == 1
        assert list(rows[0].values()) == [1]

    def test_ddl_returns_no_rows(self, db):
        assert db.raw_query(f"DELETE FROM {TABLE}") == []

    def test_prepared_filter(self, db):
        db.prepared_query(f"INSERT INTO {TABLE} (name, telegram_id) VALUES (?, ?)", ["Ada", 123])
        db.prepared_query(f"INSERT INTO {TABLE} (name, telegram_id) VALUES (?, ?)", ["Bob", 456])

        rows = db.prepared_query(f"SELECT * FROM {TABLE} WHERE telegram_id = ?", [123])
        assert [row.integer("telegram_id") for row in rows] == [123]

        assert db.prepared_query(f"SELECT * FROM {TABLE} WHERE telegram_id = ?", [789]) == []

    def test_metacharacters_round_trip(self, db):
        name = "O'Brien; -- ? :x %s"
        db.prepared_query(
            f"INSERT INTO {TABLE} (name, telegram_id) VALUES (:name, :id)", {"name": name, "id": 1}
        )

        rows = db.prepared_query(f"SELECT name FROM {TABLE} WHERE telegram_id = ?", [1])

        assert rows[0].text("name") == name

    def test_health_check(self, db):
        assert db.test_connection() is True

    def test_health_check_unreachable(self, live_config):
        config = dataclasses.replace(live_config, host="127.0.0.1", port=1, connect_timeout=2)

        assert ConnectionManager(config).test_connection() is False
