"""Tests for database connection manager."""
import json
from unittest.mock import MagicMock, patch

import pytest

from wellsignal.shared.database.connection import ConnectionManager, DatabaseConfig


class TestDatabaseConfig:
    """Tests for DatabaseConfig dataclass."""

    def test_default_values(self):
        config = DatabaseConfig(host="localhost")

        assert config.port == 5432
        assert config.database == "wellsignal"
        assert config.min_connections == 1
        assert config.max_connections == 10
        assert config.ssl_mode == "require"
        assert config.statement_timeout_ms == 15000

    def test_from_env(self):
        with patch.dict("os.environ", {
            "DB_HOST": "env-host",
            "DB_PORT": "5434",
            "DB_NAME": "env_db",
            "DB_USER": "env_user",
            "DB_PASSWORD": "env_pass",
            "DB_STATEMENT_TIMEOUT_MS": "0",
        }):
            config = DatabaseConfig.from_env()

        assert config.host == "env-host"
        assert config.port == 5434
        assert config.database == "env_db"
        assert config.username == "env_user"
        assert config.password == "env_pass"
        assert config.statement_timeout_ms == 0

    def test_from_env_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = DatabaseConfig.from_env()

        assert config.host == "localhost"
        assert config.database == "wellsignal"

    def test_connect_kwargs_include_statement_timeout(self):
        kwargs = DatabaseConfig(host="db", statement_timeout_ms=5000).connect_kwargs()

        assert kwargs["dbname"] == "wellsignal"
        assert kwargs["options"] == "-c statement_timeout=5000"

    def test_connect_kwargs_without_timeout(self):
        assert "options" not in DatabaseConfig(host="db", statement_timeout_ms=0).connect_kwargs()

    def test_from_secrets_manager(self):
        client = MagicMock()
        client.get_secret_value.return_value = {
            "SecretString": json.dumps({
                "host": "secret-host",
                "port": 6543,
                "dbname": "secret_db",
                "username": "svc",
                "password": "pw",
            })
        }

        with patch("boto3.client", return_value=client) as boto_client:
            config = DatabaseConfig.from_secrets_manager("arn:secret", region="eu-west-1")

        boto_client.assert_called_once_with("secretsmanager", region_name="eu-west-1")
        assert config.host == "secret-host"
        assert config.port == 6543
        assert config.database == "secret_db"
        assert config.username == "svc"

    def test_from_secrets_manager_failure_raises(self):
        client = MagicMock()
        client.get_secret_value.side_effect = RuntimeError("access denied")

        with patch("boto3.client", return_value=client):
            with pytest.raises(RuntimeError):
                DatabaseConfig.from_secrets_manager("arn:secret")


class TestConnectionManager:
    """Tests for ConnectionManager class."""

    @pytest.fixture
    def pool_class(self):
        with patch("wellsignal.shared.database.connection.pool.ThreadedConnectionPool") as pool_class:
            yield pool_class

    def test_pool_is_lazy(self, pool_class):
        ConnectionManager(DatabaseConfig(host="localhost"))

        pool_class.assert_not_called()

    def test_initialize_creates_pool_once(self, pool_class):
        manager = ConnectionManager(DatabaseConfig(host="localhost", max_connections=4))

        manager.initialize()
        manager.initialize()

        pool_class.assert_called_once()
        assert pool_class.call_args[0] == (1, 4)

    def test_get_connection_commits_on_success(self, pool_class):
        conn = pool_class.return_value.getconn.return_value
        manager = ConnectionManager(DatabaseConfig(host="localhost"))

        with manager.get_connection() as borrowed:
            assert borrowed is conn

        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        pool_class.return_value.putconn.assert_called_once_with(conn)

    def test_get_connection_rolls_back_on_error(self, pool_class):
        conn = pool_class.return_value.getconn.return_value
        manager = ConnectionManager(DatabaseConfig(host="localhost"))

        with pytest.raises(ValueError):
            with manager.get_connection():
                raise ValueError("boom")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool_class.return_value.putconn.assert_called_once_with(conn)

    def test_health_check_healthy(self, pool_class):
        manager = ConnectionManager(DatabaseConfig(host="localhost"))

        health = manager.health_check()

        assert health["healthy"] is True
        assert health["database"] == "wellsignal"

    def test_health_check_unreachable(self, pool_class):
        pool_class.side_effect = RuntimeError("could not connect")
        manager = ConnectionManager(DatabaseConfig(host="localhost"))

        health = manager.health_check()

        assert health == {"status": "error", "healthy": False}

    def test_close(self, pool_class):
        manager = ConnectionManager(DatabaseConfig(host="localhost"))
        manager.initialize()

        manager.close()

        pool_class.return_value.closeall.assert_called_once()
        assert manager._pool is None
