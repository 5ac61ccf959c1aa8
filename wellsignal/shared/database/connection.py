"""PostgreSQL connection management.

Wraps a psycopg2 ThreadedConnectionPool with:
- Configuration from environment or AWS Secrets Manager
- Transaction scoping (commit on success, rollback on error)
- A readiness health check
"""
import json
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from psycopg2 import pool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration."""
    host: str
    port: int = 5432
    database: str = "wellsignal"
    username: str = ""
    password: str = ""
    min_connections: int = 1
    max_connections: int = 10
    connect_timeout: int = 10
    ssl_mode: str = "require"
    # Milliseconds; 0 disables. Bounds a slow loader query.
    statement_timeout_ms: int = 15000

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Create config from environment variables.

        Environment variables:
            DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
            DB_MIN_CONN, DB_MAX_CONN, DB_SSL_MODE, DB_STATEMENT_TIMEOUT_MS
        """
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "wellsignal"),
            username=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            min_connections=int(os.getenv("DB_MIN_CONN", "1")),
            max_connections=int(os.getenv("DB_MAX_CONN", "10")),
            ssl_mode=os.getenv("DB_SSL_MODE", "require"),
            statement_timeout_ms=int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000")),
        )

    @classmethod
    def from_secrets_manager(cls, secret_arn: str, region: str = "us-east-1") -> "DatabaseConfig":
        """Load credentials from an AWS Secrets Manager secret.

        Host/port/name fall back to the environment when the secret omits them.
        """
        import boto3

        try:
            client = boto3.client("secretsmanager", region_name=region)
            secret = json.loads(client.get_secret_value(SecretId=secret_arn)["SecretString"])
        except Exception as e:
            logger.error(
                "SECRETS_MANAGER_LOAD_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            raise

        env = cls.from_env()
        return cls(
            host=secret.get("host", env.host),
            port=int(secret.get("port", env.port)),
            database=secret.get("dbname", env.database),
            username=secret.get("username", ""),
            password=secret.get("password", ""),
            min_connections=env.min_connections,
            max_connections=env.max_connections,
            ssl_mode=env.ssl_mode,
            statement_timeout_ms=env.statement_timeout_ms,
        )

    def connect_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.username,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
            "sslmode": self.ssl_mode,
        }
        if self.statement_timeout_ms:
            kwargs["options"] = f"-c statement_timeout={self.statement_timeout_ms}"
        return kwargs


class ConnectionManager:
    """Pooled PostgreSQL connections.

    The pool is created lazily on first use so importing a service never
    opens a socket.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._pool: Optional[pool.ThreadedConnectionPool] = None

        logger.info(
            "CONNECTION_MANAGER_CREATED",
            extra={
                "host": config.host,
                "database": config.database,
                "max_connections": config.max_connections,
            }
        )

    def initialize(self) -> None:
        """Create the pool. Safe to call more than once."""
        if self._pool is not None:
            return

        try:
            self._pool = pool.ThreadedConnectionPool(
                self.config.min_connections,
                self.config.max_connections,
                **self.config.connect_kwargs(),
            )
        except Exception as e:
            logger.error(
                "CONNECTION_POOL_INIT_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            raise

        logger.info(
            "CONNECTION_POOL_INITIALIZED",
            extra={"host": self.config.host, "database": self.config.database}
        )

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Borrow a connection, scoped to one transaction.

        Commits when the block exits normally and rolls back when it raises.

        Usage:
            with manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
        """
        self.initialize()

        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def health_check(self) -> Dict[str, Any]:
        """Run ``SELECT 1`` and report connectivity."""
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()
        except Exception as e:
            logger.error(
                "DATABASE_HEALTH_CHECK_FAILED",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            return {"status": "error", "healthy": False}

        return {
            "status": "connected",
            "healthy": True,
            "database": self.config.database,
        }

    def close(self) -> None:
        """Close every pooled connection. Call during shutdown."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("CONNECTION_POOL_CLOSED")


_connection_manager: Optional[ConnectionManager] = None


def get_connection_manager() -> ConnectionManager:
    """Get or create the process-wide connection manager.

    Uses Secrets Manager when DB_SECRET_ARN is set, the environment otherwise.
    """
    global _connection_manager

    if _connection_manager is None:
        secret_arn = os.getenv("DB_SECRET_ARN")
        if secret_arn:
            config = DatabaseConfig.from_secrets_manager(
                secret_arn, region=os.getenv("AWS_REGION", "us-east-1")
            )
        else:
            config = DatabaseConfig.from_env()
        _connection_manager = ConnectionManager(config)

    return _connection_manager
