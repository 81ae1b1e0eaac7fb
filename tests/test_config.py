"""Tests for database configuration loading."""

import dataclasses

import pytest

from db.config import DatabaseConfig
from db.errors import ConfigurationError


class TestDatabaseConfig:
    """Test cases for DatabaseConfig.from_env."""

    def test_defaults(self):
        """Only the connector is set: everything else falls back."""
        config = DatabaseConfig.from_env({"DB_CONNECTOR": "pgsql"})

        assert config.connector == "pgsql"
        assert config.host == "localhost"
        assert config.port is None
        assert config.database == ""
        assert config.username == ""
        assert config.password == ""
        assert config.ssl_mode is None
        assert config.ssl_ca is None
        assert config.connect_timeout == 10

    def test_settings_from_env_vars(self):
        """Every DB_* variable is picked up."""
        env = {
            "DB_CONNECTOR": " MySQL ",
            "DB_HOST": "db.example.com",
            "DB_PORT": "3307",
            "DB_DATABASE": "bot",
            "DB_USERNAME": "bot_user",
            "DB_PASSWORD": "pw",
            "DB_SSL_MODE": "verify-full",
            "DB_SSL_CA": "/certs/ca.pem",
            "DB_SSL_CERT": "/certs/client.pem",
            "DB_SSL_KEY": "/certs/client.key",
            "DB_CONNECT_TIMEOUT": "3",
        }

        config = DatabaseConfig.from_env(env)

        assert config.connector == "mysql"
        assert config.host == "db.example.com"
        assert config.port == 3307
        assert config.database == "bot"
        assert config.username == "bot_user"
        assert config.password == "pw"
        assert config.ssl_mode == "verify-full"
        assert config.ssl_ca == "/certs/ca.pem"
        assert config.ssl_cert == "/certs/client.pem"
        assert config.ssl_key == "/certs/client.key"
        assert config.connect_timeout == 3

    def test_empty_port_means_backend_default(self):
        config = DatabaseConfig.from_env({"DB_CONNECTOR": "pgsql", "DB_PORT": ""})
        assert config.port is None

    def test_invalid_port(self):
        with pytest.raises(ConfigurationError, match="DB_PORT"):
            DatabaseConfig.from_env({"DB_CONNECTOR": "pgsql", "DB_PORT": "five"})

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("DB_CONNECTOR", "postgres")
        monkeypatch.setenv("DB_HOST", "from-env")

        config = DatabaseConfig.from_env()

        assert config.connector == "postgres"
        assert config.host == "from-env"

    def test_immutable(self, pg_config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            pg_config.host = "elsewhere"

    def test_password_hidden_from_repr(self, pg_config):
        assert "s3cret" not in repr(pg_config)
