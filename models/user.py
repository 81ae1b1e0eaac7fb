"""
models/user.py
--------------
Domain model for bot users.
"""

from dataclasses import dataclass, field
from typing import Optional

from db.row import Row


@dataclass
class User:
    """
    A Telegram account known to the bot.

    Attributes:
        telegram_id: Telegram user ID (external identity).
        name: Display name taken from Telegram.
        roles: Role names granted to the user (e.g. 'admin').
        locked: Locked users are refused by every command.
        id: Database primary key (None for new records).
    """
    telegram_id: int
    name: str
    roles: list[str] = field(default_factory=list)
    locked: bool = False
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Row) -> "User":
        return cls(
            id=row.integer("id"),
            telegram_id=row.integer("telegram_id"),
            name=row.text("name"),
            roles=list(row.json("roles") or []),
            locked=bool(row.boolean("locked")),
        )

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def __str__(self) -> str:
        status = "🔒" if self.locked else "✅"
        roles = ", ".join(self.roles) if self.roles else "-"
        return f"{status} {self.name} ({self.telegram_id}) roles: {roles}"
