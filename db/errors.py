"""
db/errors.py
------------
Exceptions raised by the database access layer.

Errors raised by the driver while executing a statement are not wrapped:
they reach the caller as the driver's own DB-API exceptions.
"""


class DatabaseError(Exception):
    """Base class for every error raised by this layer."""


class ConfigurationError(DatabaseError):
    """The database configuration is unusable (e.g. unknown connector)."""


class DatabaseConnectionError(DatabaseError):
    """The driver failed to open the connection (network, auth, TLS)."""


class ParameterError(DatabaseError):
    """Placeholders and bound parameters do not match."""


class ValueTypeError(DatabaseError, TypeError):
    """A row value was read with an accessor for a different kind."""


class MigrationError(DatabaseError):
    """A schema migration cannot be applied or reverted."""
