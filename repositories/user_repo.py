"""
repositories/user_repo.py
--------------------------
Data access layer for user records.
All SQL queries related to the `users` table live here.
"""

import json
from typing import Optional

from db.backends import Backend
from db.connection import ConnectionManager
from models.user import User
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, telegram_id, name, roles, locked"

_INSERT = "INSERT INTO users (name, roles, telegram_id, locked) VALUES (?, ?, ?, ?)"

# both rely on the users_telegram_id_unique index
_UPSERT = {
    Backend.POSTGRES: _INSERT + " ON CONFLICT (telegram_id) DO UPDATE SET name = EXCLUDED.name",
    Backend.MYSQL: _INSERT + " ON DUPLICATE KEY UPDATE name = VALUES(name)",
}


class UserRepository:
    """Repository for CRUD operations on the users table."""

    def __init__(self, db: ConnectionManager):
        self.db = db

    # ── READ ──────────────────────────────────────────────

    def get_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        """
        Fetch a user by their Telegram ID.

        Returns:
            The User, or None if they never used /start.
        """
        rows = self.db.prepared_query(
            f"SELECT {_COLUMNS} FROM users WHERE telegram_id = ?", [telegram_id]
        )
        return User.from_row(rows[0]) if rows else None

    # ── CREATE / UPDATE ───────────────────────────────────

    def ensure_user(self, telegram_id: int, name: str) -> User:
        """
        Insert a user if they don't exist, or refresh their display name.
        Uses a single upsert on the telegram_id unique index for atomicity.

        Args:
            telegram_id: The Telegram user ID.
            name: Display name from Telegram.

        Returns:
            The stored User.
        """
        try:
            # the backend is known once the connection is open
            self.db.get_connection()
            self.db.prepared_query(
                _UPSERT[self.db.backend], [name, json.dumps([]), telegram_id, False]
            )
            return self.get_by_telegram_id(telegram_id)
        except Exception as e:
            logger.error(f"Failed to ensure user {telegram_id}: {e}")
            raise

    def set_locked(self, telegram_id: int, locked: bool) -> Optional[User]:
        """
        Lock or unlock a user.

        Returns:
            The updated User, or None if no such user exists.
        """
        try:
            self.db.prepared_query(
                "UPDATE users SET locked = ? WHERE telegram_id = ?", [locked, telegram_id]
            )
        except Exception as e:
            logger.error(f"Failed to set locked={locked} for user {telegram_id}: {e}")
            raise
        logger.info(f"User {telegram_id} {'locked' if locked else 'unlocked'}.")
        return self.get_by_telegram_id(telegram_id)

    def add_role(self, telegram_id: int, role: str) -> Optional[User]:
        """Grant ``role``; returns the updated User, or None if unknown."""
        user = self.get_by_telegram_id(telegram_id)
        if user is None:
            return None
        if not user.has_role(role):
            user.roles.append(role)
            self._save_roles(user)
        return user

    def remove_role(self, telegram_id: int, role: str) -> Optional[User]:
        """Revoke ``role``; returns the updated User, or None if unknown."""
        user = self.get_by_telegram_id(telegram_id)
        if user is None:
            return None
        if user.has_role(role):
            user.roles.remove(role)
            self._save_roles(user)
        return user

    def _save_roles(self, user: User) -> None:
        try:
            self.db.prepared_query(
                "UPDATE users SET roles = ? WHERE telegram_id = ?",
                [json.dumps(user.roles), user.telegram_id],
            )
        except Exception as e:
            logger.error(f"Failed to update roles for user {user.telegram_id}: {e}")
            raise
        logger.info(f"Roles of user {user.telegram_id} set to {user.roles}.")
