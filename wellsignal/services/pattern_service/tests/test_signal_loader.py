"""Tests for the signal loader."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from wellsignal.shared.database import RepositoryError
from wellsignal.shared.models import ChatMessage, CheckIn, MessageRole
from wellsignal.shared.utils import configure_log_salt
from wellsignal.services.pattern_service.repositories import (
    ChatMessageRepository,
    CheckInRepository,
)
from wellsignal.services.pattern_service.signal_loader import SignalLoader

NOW = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def setup_log_salt():
    configure_log_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def repositories():
    check_ins = CheckInRepository()
    messages = ChatMessageRepository()
    check_ins.insert_many([
        CheckIn(id=f"ci_{d}", user_id="user_1", mood="okay", created_at=NOW - timedelta(days=d))
        for d in range(20)
    ])
    messages.insert_many([
        ChatMessage(id="m1", user_id="user_1", role=MessageRole.USER, content="tired", created_at=NOW),
        ChatMessage(id="m2", user_id="user_1", role=MessageRole.ASSISTANT, content="rest", created_at=NOW),
    ])
    return check_ins, messages


class TestSignalLoader:
    """Tests for SignalLoader.load."""

    def test_loads_window_newest_first(self, repositories):
        loader = SignalLoader(*repositories)

        snapshot = loader.load("user_1", lookback_days=7, now=NOW)

        assert snapshot.since == NOW - timedelta(days=7)
        assert [c.id for c in snapshot.check_ins] == [f"ci_{d}" for d in range(8)]
        assert [m.id for m in snapshot.messages] == ["m1"]

    def test_max_records_caps_each_collection(self, repositories):
        loader = SignalLoader(*repositories, max_records=3)

        snapshot = loader.load("user_1", lookback_days=30, now=NOW)

        assert len(snapshot.check_ins) == 3
        assert snapshot.check_ins[0].id == "ci_0"

    def test_unknown_user_gets_empty_snapshot(self, repositories):
        snapshot = SignalLoader(*repositories).load("nobody", lookback_days=14, now=NOW)

        assert snapshot.is_empty

    def test_read_failure_propagates(self):
        check_ins = MagicMock(spec=CheckInRepository)
        check_ins.find_since.side_effect = RepositoryError("timeout")

        with pytest.raises(RepositoryError):
            SignalLoader(check_ins, MagicMock(spec=ChatMessageRepository)).load("user_1", 14, now=NOW)
