"""
db/connection.py
----------------
Manages the single database connection shared by the whole bot.

The connection is opened lazily on first use and reused afterwards.
One ConnectionManager is created at startup and handed to everything
that needs the database (bot_data, repositories, the migration CLI).
"""

import threading
from typing import Callable, Optional

from db.backends import Backend
from db.config import DatabaseConfig
from db.placeholders import Parameters, bind
from db.row import Row
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """
    Owns one lazily opened connection and runs queries on it.

    Args:
        config: Fixed settings, or None to read DB_* variables from the
            environment when the connection is first opened.

    Thread safety:
        Opening is guarded so concurrent first calls open exactly one
        connection. Statements are serialized on the shared handle, since
        mysql-connector connections must not be used from two threads at once.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self._config = config
        self._backend: Optional[Backend] = None
        self._conn = None
        self._open_lock = threading.Lock()
        self._query_lock = threading.Lock()

    @property
    def backend(self) -> Optional[Backend]:
        """Backend of the open connection, None until the first successful open."""
        return self._backend

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    # ── Connection ────────────────────────────────────────

    def get_connection(self):
        """
        Return the shared connection, opening it on first call.

        Raises:
            ConfigurationError: If the connector is unknown or settings are malformed.
            DatabaseConnectionError: If the server cannot be reached or rejects the login.
        """
        conn = self._conn
        if conn is not None:
            return conn
        with self._open_lock:
            if self._conn is None:
                self._open()
            return self._conn

    def _open(self) -> None:
        # Nothing is cached unless the driver hands back a live connection.
        config = self._config or DatabaseConfig.from_env()
        backend = Backend.from_identifier(config.connector)
        port = config.port or backend.default_port
        try:
            conn = backend.open(config)
        except Exception as e:
            logger.error(f"Failed to connect to {backend.value} at {config.host}:{port}: {e}")
            raise
        self._config = config
        self._backend = backend
        self._conn = conn
        logger.info(f"Connected to {backend.value} database '{config.database}' at {config.host}:{port}.")

    def close(self) -> None:
        """Close the connection; the next query opens a new one."""
        with self._open_lock:
            conn, self._conn = self._conn, None
            self._backend = None
            if conn is not None:
                conn.close()
                logger.info("Database connection closed.")

    # ── Queries ───────────────────────────────────────────

    def raw_query(self, sql: str) -> list[Row]:
        """
        Execute ``sql`` verbatim, without parameter binding.

        Never pass text built from user input here; use prepared_query.

        Returns:
            Every row produced, in result order; [] for statements without
            a result set (DDL, INSERT without RETURNING, ...).
        """
        conn = self.get_connection()
        return self._run(conn, lambda cur: cur.execute(sql))

    def prepared_query(self, sql: str, parameters: Parameters = ()) -> list[Row]:
        """
        Execute ``sql`` with ``parameters`` bound to its placeholders.

        Placeholders are ``?`` (with a sequence) or ``:name`` (with a mapping)
        on every backend. On MySQL, literal ``%s`` / ``%(`` text cannot be
        combined with parameters; pass it as a parameter.

        Raises:
            ParameterError: If placeholders and parameters do not match.
        """
        conn = self.get_connection()
        driver_sql, args = bind(
            sql,
            parameters,
            escape_percent=self._backend is Backend.POSTGRES,
            backslash_escapes=self._backend is Backend.MYSQL,
        )
        if args is None:
            return self._run(conn, lambda cur: cur.execute(driver_sql))
        return self._run(conn, lambda cur: cur.execute(driver_sql, args))

    def _run(self, conn, execute: Callable) -> list[Row]:
        with self._query_lock:
            with conn.cursor() as cur:
                execute(cur)
                if cur.description is None:
                    return []
                columns = [d[0] for d in cur.description]
                return [Row(columns, values) for values in cur.fetchall()]

    # ── Health check ──────────────────────────────────────

    def test_connection(self) -> bool:
        """
        Run ``SELECT 1`` against the database.

        Returns:
            True if the round trip succeeded, False on any failure
            (bad configuration, unreachable server, query error).
        """
        try:
            self.raw_query("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
