"""Tests for the rate-limit guard and the memory counter."""
import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from wellsignal.shared.database import RepositoryError
from wellsignal.shared.utils import configure_log_salt
from wellsignal.services.pattern_service.config import RateLimitPolicy
from wellsignal.services.pattern_service.rate_limit import RateLimitGuard, RateLimitStatus
from wellsignal.services.pattern_service.repositories import (
    RateLimitRepository,
    RateLimitResult,
)

NOW = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def setup_log_salt():
    configure_log_salt("test_salt_that_is_at_least_32_characters_long")


class TestMemoryRateLimitCounter:
    """Tests for RateLimitRepository without a database."""

    def test_allows_up_to_max(self):
        repository = RateLimitRepository()

        results = [
            repository.check_rate_limit("user_1", "analyze_patterns", 3, 60, now=NOW)
            for _ in range(4)
        ]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_denied_request_not_counted(self):
        repository = RateLimitRepository()
        for _ in range(3):
            repository.check_rate_limit("user_1", "a", 2, 60, now=NOW)

        later = NOW + timedelta(minutes=61)
        assert repository.check_rate_limit("user_1", "a", 2, 60, now=later).remaining == 1

    def test_window_slides(self):
        repository = RateLimitRepository()
        repository.check_rate_limit("user_1", "a", 1, 60, now=NOW)

        assert not repository.check_rate_limit("user_1", "a", 1, 60, now=NOW + timedelta(minutes=30)).allowed
        assert repository.check_rate_limit("user_1", "a", 1, 60, now=NOW + timedelta(minutes=61)).allowed

    def test_reset_at_is_oldest_hit_plus_window(self):
        repository = RateLimitRepository()
        repository.check_rate_limit("user_1", "a", 2, 60, now=NOW)
        repository.check_rate_limit("user_1", "a", 2, 60, now=NOW + timedelta(minutes=10))

        denied = repository.check_rate_limit("user_1", "a", 2, 60, now=NOW + timedelta(minutes=20))

        assert denied.reset_at == NOW + timedelta(minutes=60)

    def test_users_and_actions_counted_separately(self):
        repository = RateLimitRepository()
        repository.check_rate_limit("user_1", "a", 1, 60, now=NOW)

        assert repository.check_rate_limit("user_2", "a", 1, 60, now=NOW).allowed
        assert repository.check_rate_limit("user_1", "b", 1, 60, now=NOW).allowed

    def test_expired_hits_of_other_users_are_pruned(self):
        repository = RateLimitRepository()
        for n in range(5):
            repository.check_rate_limit(f"idle_{n}", "a", 10, 60, now=NOW)

        repository.check_rate_limit("user_1", "a", 10, 60, now=NOW + timedelta(minutes=61))

        assert [hit.user_id for hit in repository._memory_snapshot()] == ["user_1"]

    def test_unexpired_hits_of_other_users_are_kept(self):
        repository = RateLimitRepository()
        repository.check_rate_limit("user_2", "a", 10, 60, now=NOW)

        repository.check_rate_limit("user_1", "a", 10, 60, now=NOW + timedelta(minutes=30))

        assert len(repository._memory_snapshot()) == 2

    def test_concurrent_checks_never_exceed_max(self):
        repository = RateLimitRepository()
        results = []
        lock = threading.Lock()

        def worker():
            result = repository.check_rate_limit("user_1", "a", 10, 60, now=NOW)
            with lock:
                results.append(result.allowed)

        threads = [threading.Thread(target=worker) for _ in range(40)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 10


class TestRateLimitGuard:
    """Tests for the three-state decision."""

    def test_allowed(self):
        guard = RateLimitGuard(RateLimitRepository(), RateLimitPolicy(max_requests=2))

        decision = guard.check("user_1")

        assert decision.status is RateLimitStatus.ALLOWED
        assert decision.remaining == 1
        assert decision.may_proceed

    def test_denied_after_max(self):
        guard = RateLimitGuard(RateLimitRepository(), RateLimitPolicy(max_requests=10))
        for _ in range(10):
            assert guard.check("user_1").may_proceed

        decision = guard.check("user_1")

        assert decision.status is RateLimitStatus.DENIED
        assert decision.remaining == 0
        assert decision.reset_at is not None
        assert not decision.may_proceed

    def test_counter_failure_is_check_failed(self):
        repository = MagicMock(spec=RateLimitRepository)
        repository.check_rate_limit.side_effect = RepositoryError("function missing")

        decision = RateLimitGuard(repository).check("user_1")

        assert decision.status is RateLimitStatus.CHECK_FAILED
        assert decision.may_proceed
        assert "function missing" in decision.error

    def test_passes_policy_to_counter(self):
        repository = MagicMock(spec=RateLimitRepository)
        repository.check_rate_limit.return_value = RateLimitResult(
            allowed=True, remaining=4, reset_at=NOW
        )
        policy = RateLimitPolicy(action="custom", max_requests=5, window_minutes=15)

        RateLimitGuard(repository, policy).check("user_1")

        repository.check_rate_limit.assert_called_once_with(
            user_id="user_1", action="custom", max_requests=5, window_minutes=15
        )
