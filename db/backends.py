"""
db/backends.py
--------------
Supported SQL backends.

Each backend knows its default port, how to turn a DatabaseConfig into
driver connection parameters, and how to open a connection that raises
on every failure and commits each statement on its own (no transactions).
"""

from enum import Enum

import mysql.connector
import psycopg2
from psycopg2.extensions import make_dsn

from db.config import DatabaseConfig
from db.errors import ConfigurationError, DatabaseConnectionError
from utils.logger import get_logger

logger = get_logger(__name__)

# ssl_mode -> mysql-connector keyword arguments
_MYSQL_SSL_MODES = {
    "disable": {"ssl_disabled": True},
    "allow": {},
    "prefer": {},
    # mysql-connector has no "TLS or fail" switch; see _mysql_params
    "require": {},
    "verify-ca": {"ssl_verify_cert": True},
    "verify-full": {"ssl_verify_cert": True, "ssl_verify_identity": True},
}


class Backend(Enum):
    """Closed set of database families a connection can be opened against."""

    POSTGRES = "postgres"
    MYSQL = "mysql"

    @classmethod
    def from_identifier(cls, identifier: str) -> "Backend":
        """
        Resolve a DB_CONNECTOR value to a backend.

        Raises:
            ConfigurationError: If the identifier names no supported backend.
        """
        backend = _ALIASES.get((identifier or "").strip().lower())
        if backend is None:
            raise ConfigurationError(f"Unknown database connector: {identifier!r}")
        return backend

    @property
    def default_port(self) -> int:
        return 5432 if self is Backend.POSTGRES else 3306

    def connection_parameters(self, config: DatabaseConfig):
        """
        Build the driver-specific connection parameters.

        Returns:
            A libpq DSN string for Postgres, a keyword dict for MySQL.
        """
        if self is Backend.POSTGRES:
            return _postgres_dsn(config, self.default_port)
        return _mysql_params(config, self.default_port)

    def open(self, config: DatabaseConfig):
        """
        Open a new connection in autocommit mode.

        Raises:
            DatabaseConnectionError: If the driver cannot connect.
        """
        params = self.connection_parameters(config)
        if self is Backend.POSTGRES:
            try:
                conn = psycopg2.connect(params)
            except psycopg2.Error as e:
                raise DatabaseConnectionError(f"Cannot connect to Postgres: {e}") from e
            conn.autocommit = True
            return conn
        try:
            return mysql.connector.connect(**params)
        except mysql.connector.Error as e:
            raise DatabaseConnectionError(f"Cannot connect to MySQL: {e}") from e


_ALIASES = {
    "pgsql": Backend.POSTGRES,
    "postgres": Backend.POSTGRES,
    "postgresql": Backend.POSTGRES,
    "mysql": Backend.MYSQL,
}


def _postgres_dsn(config: DatabaseConfig, default_port: int) -> str:
    # make_dsn drops None values, so unset TLS fields are left to libpq defaults
    return make_dsn(
        host=config.host,
        port=config.port or default_port,
        dbname=config.database,
        user=config.username,
        password=config.password,
        sslmode=config.ssl_mode,
        sslrootcert=config.ssl_ca,
        sslcert=config.ssl_cert,
        sslkey=config.ssl_key,
        connect_timeout=config.connect_timeout,
    )


def _mysql_params(config: DatabaseConfig, default_port: int) -> dict:
    params = {
        "host": config.host,
        "port": config.port or default_port,
        "database": config.database,
        "user": config.username,
        "password": config.password,
        "connection_timeout": config.connect_timeout,
        "charset": "utf8mb4",
        "collation": "utf8mb4_unicode_ci",
        "autocommit": True,
    }
    if config.ssl_mode is not None:
        try:
            params.update(_MYSQL_SSL_MODES[config.ssl_mode.lower()])
        except KeyError:
            raise ConfigurationError(f"Unknown DB_SSL_MODE: {config.ssl_mode!r}") from None
        if config.ssl_mode.lower() == "require":
            if config.ssl_ca:
                # like libpq, require with a root certificate verifies the server
                params["ssl_verify_cert"] = True
            else:
                logger.warning(
                    "DB_SSL_MODE=require without DB_SSL_CA: MySQL falls back to an "
                    "unencrypted connection if the server does not offer TLS."
                )
    if config.ssl_ca:
        params["ssl_ca"] = config.ssl_ca
    if config.ssl_cert:
        params["ssl_cert"] = config.ssl_cert
    if config.ssl_key:
        params["ssl_key"] = config.ssl_key
    return params
