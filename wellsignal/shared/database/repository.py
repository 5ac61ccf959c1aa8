"""Base repository for PostgreSQL-backed records.

Every repository runs against PostgreSQL when given a ConnectionManager and
against an in-process list otherwise (local development and tests). Both
backends honour the same contract, so callers never branch on the backend.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

import psycopg2

from .connection import ConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found in database."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository.

    Subclasses provide row/entity conversion and their own queries; this
    class supplies backend selection, error wrapping and batch inserts.
    """

    def __init__(
        self,
        connection_manager: Optional[ConnectionManager],
        table_name: str,
    ):
        """Initialize repository.

        Args:
            connection_manager: PostgreSQL connection manager, or None for
                the in-memory backend
            table_name: Name of the database table
        """
        self.connection_manager = connection_manager
        self.table_name = table_name
        self._memory_store: List[T] = []
        self._memory_lock = threading.Lock()

        logger.info(
            "REPOSITORY_INITIALIZED",
            extra={
                "table_name": table_name,
                "backend": "postgresql" if connection_manager else "memory",
            }
        )

    @property
    def uses_database(self) -> bool:
        return self.connection_manager is not None

    @abstractmethod
    def _row_to_entity(self, row: tuple) -> T:
        """Convert database row to entity."""

    @abstractmethod
    def _entity_to_params(self, entity: T) -> Dict[str, Any]:
        """Convert entity to a column -> value mapping for INSERT."""

    def _fetch(self, query: str, params: Sequence[Any]) -> List[T]:
        """Run a SELECT and convert every row.

        Raises:
            RepositoryError: On any database error, or a row that cannot be converted
        """
        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg2.Error as e:
            logger.error(
                "REPOSITORY_QUERY_FAILED",
                extra={"table_name": self.table_name, "error": str(e)}
            )
            raise RepositoryError(f"Query on {self.table_name} failed: {e}") from e

        try:
            return [self._row_to_entity(row) for row in rows]
        except (ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
            logger.error(
                "REPOSITORY_ROW_CONVERSION_FAILED",
                extra={
                    "table_name": self.table_name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            raise RepositoryError(f"Unreadable row in {self.table_name}: {e}") from e

    def _execute(self, query: str, params: Sequence[Any]) -> int:
        """Run a write statement and return the affected row count.

        Raises:
            RepositoryError: On any database error
        """
        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    return cur.rowcount
        except psycopg2.Error as e:
            logger.error(
                "REPOSITORY_WRITE_FAILED",
                extra={"table_name": self.table_name, "error": str(e)}
            )
            raise RepositoryError(f"Write to {self.table_name} failed: {e}") from e

    def insert_many(self, entities: Sequence[T]) -> int:
        """Append entities in a single batch.

        There is no uniqueness constraint here; callers dedupe first.

        Returns:
            Number of entities written

        Raises:
            RepositoryError: If the batch write fails (nothing is written)
        """
        if not entities:
            return 0

        if not self.uses_database:
            with self._memory_lock:
                self._memory_store.extend(entities)
            return len(entities)

        rows = [self._entity_to_params(entity) for entity in entities]
        columns = list(rows[0].keys())
        query = (
            f"INSERT INTO {self.table_name} ({', '.join(columns)}) "
            f"VALUES ({', '.join(['%s'] * len(columns))})"
        )

        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.executemany(query, [tuple(row[col] for col in columns) for row in rows])
        except psycopg2.Error as e:
            logger.error(
                "REPOSITORY_BATCH_INSERT_FAILED",
                extra={
                    "table_name": self.table_name,
                    "batch_size": len(rows),
                    "error": str(e),
                }
            )
            raise RepositoryError(f"Batch insert into {self.table_name} failed: {e}") from e

        return len(rows)

    def _memory_snapshot(self) -> List[T]:
        with self._memory_lock:
            return list(self._memory_store)
