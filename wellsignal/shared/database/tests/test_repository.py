"""Tests for base repository pattern."""
from dataclasses import dataclass
from typing import Any, Dict
from unittest.mock import MagicMock

import psycopg2
import pytest

from wellsignal.shared.database.repository import (
    BaseRepository,
    NotFoundError,
    RepositoryError,
)


@dataclass
class SampleEntity:
    """Entity for repository tests."""
    id: str
    name: str
    value: int


class SampleRepository(BaseRepository[SampleEntity]):
    """Concrete repository for testing."""

    def _row_to_entity(self, row: tuple) -> SampleEntity:
        return SampleEntity(id=row[0], name=row[1], value=row[2])

    def _entity_to_params(self, entity: SampleEntity) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "name": entity.name,
            "value": entity.value,
        }


@pytest.fixture
def db():
    manager = MagicMock()
    conn = MagicMock()
    cursor = MagicMock()
    manager.get_connection.return_value.__enter__.return_value = conn
    conn.cursor.return_value.__enter__.return_value = cursor
    return manager, cursor


class TestRepositoryExceptions:
    """Tests for repository exception classes."""

    def test_repository_error(self):
        assert str(RepositoryError("Test error")) == "Test error"

    def test_not_found_error(self):
        assert isinstance(NotFoundError("Entity not found"), RepositoryError)


class TestMemoryBackend:

    def test_uses_memory_without_manager(self):
        repository = SampleRepository(None, "samples")

        assert repository.uses_database is False
        assert repository.table_name == "samples"

    def test_insert_many_appends(self):
        repository = SampleRepository(None, "samples")

        written = repository.insert_many([SampleEntity("1", "a", 1), SampleEntity("2", "b", 2)])

        assert written == 2
        assert [e.id for e in repository._memory_snapshot()] == ["1", "2"]

    def test_snapshot_is_a_copy(self):
        repository = SampleRepository(None, "samples")
        repository.insert_many([SampleEntity("1", "a", 1)])

        repository._memory_snapshot().clear()

        assert len(repository._memory_snapshot()) == 1


class TestDatabaseBackend:
    """Tests for the PostgreSQL helpers with a mocked cursor."""

    def test_fetch_converts_rows(self, db):
        manager, cursor = db
        cursor.fetchall.return_value = [("1", "a", 1), ("2", "b", 2)]

        entities = SampleRepository(manager, "samples")._fetch("SELECT 1", ())

        assert entities == [SampleEntity("1", "a", 1), SampleEntity("2", "b", 2)]

    def test_fetch_wraps_database_errors(self, db):
        manager, cursor = db
        cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")

        with pytest.raises(RepositoryError):
            SampleRepository(manager, "samples")._fetch("SELECT 1", ())

    def test_execute_returns_rowcount(self, db):
        manager, cursor = db
        cursor.rowcount = 3

        assert SampleRepository(manager, "samples")._execute("UPDATE samples SET value = 0", ()) == 3

    def test_insert_many_builds_batch(self, db):
        manager, cursor = db

        SampleRepository(manager, "samples").insert_many(
            [SampleEntity("1", "a", 1), SampleEntity("2", "b", 2)]
        )

        query, rows = cursor.executemany.call_args[0]
        assert query == "INSERT INTO samples (id, name, value) VALUES (%s, %s, %s)"
        assert rows == [("1", "a", 1), ("2", "b", 2)]

    def test_insert_many_empty_skips_database(self, db):
        manager, _ = db

        assert SampleRepository(manager, "samples").insert_many([]) == 0
        manager.get_connection.assert_not_called()

    def test_non_database_errors_propagate_unwrapped(self, db):
        manager, cursor = db
        cursor.executemany.side_effect = TypeError("bad param")

        with pytest.raises(TypeError):
            SampleRepository(manager, "samples").insert_many([SampleEntity("1", "a", 1)])

    def test_row_conversion_failure_wrapped(self, db):
        manager, cursor = db
        cursor.fetchall.return_value = [("1", "a", 1), ("2",)]

        with pytest.raises(RepositoryError):
            SampleRepository(manager, "samples")._fetch("SELECT 1", ())
