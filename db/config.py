"""
db/config.py
------------
Immutable database settings, captured from the environment once,
when the connection is about to be opened.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from db.errors import ConfigurationError


def _optional(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name, "").strip()
    return value or None


def _int(environ: Mapping[str, str], name: str) -> Optional[int]:
    raw = _optional(environ, name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Connection settings for one database.

    Attributes:
        connector: Backend identifier ('pgsql', 'postgres', 'postgresql', 'mysql').
        host: Server host name or address.
        port: Server port, or None for the backend's default port.
        database: Database (schema) name.
        username: Login user.
        password: Login password (never shown in repr).
        ssl_mode: Postgres-style sslmode ('disable', 'prefer', 'require',
            'verify-ca', 'verify-full'), applied to every backend.
        ssl_ca: Path to the CA certificate.
        ssl_cert: Path to the client certificate.
        ssl_key: Path to the client key.
        connect_timeout: Seconds to wait while opening the connection.
    """
    connector: str
    host: str = "localhost"
    port: Optional[int] = None
    database: str = ""
    username: str = ""
    password: str = field(default="", repr=False)
    ssl_mode: Optional[str] = None
    ssl_ca: Optional[str] = None
    ssl_cert: Optional[str] = None
    ssl_key: Optional[str] = None
    connect_timeout: int = 10

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DatabaseConfig":
        """
        Build the configuration from DB_* environment variables.

        Args:
            environ: Mapping to read from; defaults to ``os.environ``.

        Raises:
            ConfigurationError: If DB_PORT or DB_CONNECT_TIMEOUT is not an integer.
        """
        env = os.environ if environ is None else environ
        timeout = _int(env, "DB_CONNECT_TIMEOUT")
        return cls(
            connector=env.get("DB_CONNECTOR", "").strip().lower(),
            host=_optional(env, "DB_HOST") or "localhost",
            port=_int(env, "DB_PORT"),
            database=env.get("DB_DATABASE", ""),
            username=env.get("DB_USERNAME", ""),
            password=env.get("DB_PASSWORD", ""),
            ssl_mode=_optional(env, "DB_SSL_MODE"),
            ssl_ca=_optional(env, "DB_SSL_CA"),
            ssl_cert=_optional(env, "DB_SSL_CERT"),
            ssl_key=_optional(env, "DB_SSL_KEY"),
            connect_timeout=10 if timeout is None else timeout,
        )
