"""Tests for the users repository and model."""

import json

import pytest
from unittest.mock import MagicMock

from db.backends import Backend
from db.connection import ConnectionManager
from db.row import Row
from models.user import User
from repositories.user_repo import UserRepository


@pytest.fixture
def db():
    db = MagicMock(spec=ConnectionManager)
    db.backend = Backend.POSTGRES
    return db


@pytest.fixture
def repo(db):
    return UserRepository(db)


class TestUserModel:
    """Test cases for User.from_row."""

    def test_from_postgres_row(self, user_row):
        user = User.from_row(user_row(roles=["admin"], locked=True))

        assert user == User(id=1, telegram_id=42, name="Ada", roles=["admin"], locked=True)
        assert user.has_role("admin")

    def test_from_mysql_row(self):
        row = Row(
            ["id", "telegram_id", "name", "roles", "locked"],
            [7, 99, "Bob", '["ops"]', 0],
        )

        user = User.from_row(row)

        assert user.roles == ["ops"]
        assert user.locked is False

    def test_null_roles(self):
        row = Row(["id", "telegram_id", "name", "roles", "locked"], [1, 2, "C", None, False])
        assert User.from_row(row).roles == []

    def test_str(self):
        user = User(telegram_id=42, name="Ada", roles=["admin"], locked=True)
        assert str(user) == "🔒 Ada (42) roles: admin"


class TestUserRepository:
    """Test cases for UserRepository."""

    def test_get_by_telegram_id(self, repo, db, user_row):
        db.prepared_query.return_value = [user_row()]

        user = repo.get_by_telegram_id(42)

        assert user.telegram_id == 42
        sql, params = db.prepared_query.call_args.args
        assert "WHERE telegram_id = ?" in sql
        assert params == [42]

    def test_get_missing_user(self, repo, db):
        db.prepared_query.return_value = []
        assert repo.get_by_telegram_id(42) is None

    def test_ensure_user_upserts_on_postgres(self, repo, db, user_row):
        db.prepared_query.side_effect = [[], [user_row()]]

        user = repo.ensure_user(42, "Ada")

        assert user.name == "Ada"
        db.get_connection.assert_called_once()
        upsert_sql, upsert_params = db.prepared_query.call_args_list[0].args
        assert upsert_sql.startswith("INSERT INTO users")
        assert "ON CONFLICT (telegram_id) DO UPDATE SET name = EXCLUDED.name" in upsert_sql
        assert upsert_params == ["Ada", json.dumps([]), 42, False]

    def test_ensure_user_upserts_on_mysql(self, repo, db, user_row):
        db.backend = Backend.MYSQL
        db.prepared_query.side_effect = [[], [user_row()]]

        repo.ensure_user(42, "Ada")

        upsert_sql, _ = db.prepared_query.call_args_list[0].args
        assert upsert_sql.endswith("ON DUPLICATE KEY UPDATE name = VALUES(name)")

    def test_ensure_user_is_a_single_write(self, repo, db, user_row):
        db.prepared_query.side_effect = [[], [user_row(name="Ada")]]

        user = repo.ensure_user(42, "Ada")

        writes = [c for c in db.prepared_query.call_args_list if not c.args[0].startswith("SELECT")]
        assert len(writes) == 1
        assert user.name == "Ada"

    def test_ensure_user_reraises(self, repo, db):
        db.prepared_query.side_effect = RuntimeError("relation \"users\" does not exist")

        with pytest.raises(RuntimeError):
            repo.ensure_user(42, "Ada")

    def test_set_locked(self, repo, db, user_row):
        db.prepared_query.side_effect = [[], [user_row(locked=True)]]

        user = repo.set_locked(42, True)

        assert user.locked is True
        assert db.prepared_query.call_args_list[0].args == (
            "UPDATE users SET locked = ? WHERE telegram_id = ?",
            [True, 42],
        )

    def test_add_role(self, repo, db, user_row):
        db.prepared_query.side_effect = [[user_row(roles=["ops"])], []]

        user = repo.add_role(42, "admin")

        assert user.roles == ["ops", "admin"]
        assert db.prepared_query.call_args_list[1].args == (
            "UPDATE users SET roles = ? WHERE telegram_id = ?",
            ['["ops", "admin"]', 42],
        )

    def test_add_existing_role_is_a_no_op(self, repo, db, user_row):
        db.prepared_query.return_value = [user_row(roles=["admin"])]

        repo.add_role(42, "admin")

        assert db.prepared_query.call_count == 1

    def test_remove_role(self, repo, db, user_row):
        db.prepared_query.side_effect = [[user_row(roles=["ops", "admin"])], []]

        user = repo.remove_role(42, "ops")

        assert user.roles == ["admin"]
        assert db.prepared_query.call_args_list[1].args[1] == ['["admin"]', 42]

    def test_role_change_for_unknown_user(self, repo, db):
        db.prepared_query.return_value = []

        assert repo.add_role(42, "admin") is None
        assert repo.remove_role(42, "admin") is None
