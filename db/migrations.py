"""
db/migrations.py
----------------
Versioned, forward-only schema migrations with optional reverse steps.

Runs outside the bot process against the same DB_* configuration:
    python -m db.migrations status
    python -m db.migrations migrate
    python -m db.migrations rollback

Applied versions are recorded in the ``schema_migrations`` table.
Statements run one by one in autocommit mode; a failing statement stops
the run and leaves its migration unrecorded.
"""

from dataclasses import dataclass, field
from typing import Optional

import typer

from db.backends import Backend
from db.connection import ConnectionManager
from db.errors import MigrationError
from utils.logger import get_logger

logger = get_logger(__name__)

TRACKING_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version     VARCHAR(32) NOT NULL PRIMARY KEY,
        description VARCHAR(255) NOT NULL,
        applied_at  TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
"""


@dataclass(frozen=True)
class Migration:
    """
    One schema change.

    Attributes:
        version: Sortable identifier (timestamp, e.g. '20241013130804').
        description: Short human-readable summary.
        up: Statements applying the change, per backend.
        down: Statements reverting it, per backend (empty if irreversible).
    """
    version: str
    description: str
    up: dict = field(default_factory=dict)
    down: dict = field(default_factory=dict)

    def statements(self, backend: Backend, reverse: bool = False) -> list[str]:
        steps = self.down if reverse else self.up
        if backend not in steps:
            direction = "down" if reverse else "up"
            raise MigrationError(
                f"Migration {self.version} has no {direction} step for {backend.value}"
            )
        return steps[backend]


MIGRATIONS: list[Migration] = [
    Migration(
        version="20241013130804",
        description="Users table",
        up={
            Backend.POSTGRES: ["""
                CREATE TABLE users (
                    id          BIGSERIAL NOT NULL,
                    name        VARCHAR(255) NOT NULL,
                    roles       JSON,
                    telegram_id BIGINT NOT NULL,
                    locked      BOOLEAN NOT NULL DEFAULT FALSE,
                    PRIMARY KEY (id)
                )
            """],
            Backend.MYSQL: ["""
                CREATE TABLE users (
                    id          BIGINT NOT NULL AUTO_INCREMENT,
                    name        VARCHAR(255) NOT NULL,
                    roles       JSON,
                    telegram_id BIGINT NOT NULL,
                    locked      BOOLEAN NOT NULL DEFAULT FALSE,
                    PRIMARY KEY (id)
                )
            """],
        },
        down={
            Backend.POSTGRES: ["DROP TABLE users"],
            Backend.MYSQL: ["DROP TABLE users"],
        },
    ),
    Migration(
        version="20241020091500",
        description="Unique Telegram id per user",
        up={
            Backend.POSTGRES: ["CREATE UNIQUE INDEX users_telegram_id_unique ON users (telegram_id)"],
            Backend.MYSQL: ["CREATE UNIQUE INDEX users_telegram_id_unique ON users (telegram_id)"],
        },
        down={
            Backend.POSTGRES: ["DROP INDEX users_telegram_id_unique"],
            Backend.MYSQL: ["DROP INDEX users_telegram_id_unique ON users"],
        },
    ),
]


class Migrator:
    """Applies and reverts MIGRATIONS against one database."""

    def __init__(self, db: ConnectionManager, migrations: Optional[list[Migration]] = None):
        self.db = db
        self.migrations = sorted(
            MIGRATIONS if migrations is None else migrations, key=lambda m: m.version
        )

    def _ensure_table(self) -> Backend:
        self.db.raw_query(TRACKING_TABLE_SQL)
        return self.db.backend

    def applied_versions(self) -> list[str]:
        """Versions recorded in schema_migrations, oldest first."""
        self._ensure_table()
        rows = self.db.raw_query("SELECT version FROM schema_migrations ORDER BY version")
        return [row.text("version") for row in rows]

    def status(self) -> list[tuple[Migration, bool]]:
        """Every known migration paired with whether it has been applied."""
        applied = set(self.applied_versions())
        return [(m, m.version in applied) for m in self.migrations]

    def pending(self) -> list[Migration]:
        return [m for m, done in self.status() if not done]

    def migrate(self) -> list[Migration]:
        """
        Apply every pending migration in version order.

        Returns:
            The migrations applied by this call.
        """
        backend = self._ensure_table()
        done = []
        for migration in self.pending():
            logger.info(f"Applying {migration.version}: {migration.description}")
            for sql in migration.statements(backend):
                self.db.raw_query(sql)
            self.db.prepared_query(
                "INSERT INTO schema_migrations (version, description) VALUES (?, ?)",
                [migration.version, migration.description],
            )
            done.append(migration)
        if not done:
            logger.info("Schema is up to date.")
        return done

    def rollback(self) -> Optional[Migration]:
        """
        Revert the most recently applied migration.

        Returns:
            The reverted migration, or None if nothing was applied.

        Raises:
            MigrationError: If the migration is unknown or has no down step.
        """
        backend = self._ensure_table()
        applied = self.applied_versions()
        if not applied:
            logger.info("Nothing to roll back.")
            return None
        latest = applied[-1]
        migration = next((m for m in self.migrations if m.version == latest), None)
        if migration is None:
            raise MigrationError(f"Applied migration {latest} is not known to this version of the bot")
        steps = migration.statements(backend, reverse=True)
        if not steps:
            raise MigrationError(f"Migration {latest} cannot be reverted")
        logger.info(f"Reverting {migration.version}: {migration.description}")
        for sql in steps:
            self.db.raw_query(sql)
        self.db.prepared_query("DELETE FROM schema_migrations WHERE version = ?", [latest])
        return migration


# ── CLI ───────────────────────────────────────────────────

app = typer.Typer(
    name="migrations",
    help="Apply versioned schema changes to the bot database.",
    add_completion=False,
)


def _migrator() -> Migrator:
    return Migrator(ConnectionManager())


@app.command()
def status() -> None:
    """Show applied and pending migrations."""
    try:
        rows = _migrator().status()
    except Exception as e:
        typer.echo(f"Cannot read migration status: {e}", err=True)
        raise typer.Exit(1)
    for migration, done in rows:
        mark = "applied" if done else "pending"
        typer.echo(f"{migration.version}  {mark:<8} {migration.description}")


@app.command()
def migrate() -> None:
    """Apply all pending migrations."""
    try:
        done = _migrator().migrate()
    except Exception as e:
        typer.echo(f"Migration failed: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Applied {len(done)} migration(s).")


@app.command()
def rollback() -> None:
    """Revert the latest applied migration."""
    try:
        migration = _migrator().rollback()
    except Exception as e:
        typer.echo(f"Rollback failed: {e}", err=True)
        raise typer.Exit(1)
    if migration is None:
        typer.echo("Nothing to roll back.")
    else:
        typer.echo(f"Reverted {migration.version}: {migration.description}")


if __name__ == "__main__":
    app()
