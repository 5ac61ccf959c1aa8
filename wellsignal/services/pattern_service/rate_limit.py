"""Rate-limit guard for pattern analysis.

Wraps the rate-limit counter in a three-state decision. A counter that
cannot be reached yields CHECK_FAILED rather than ALLOWED so callers and
operators can tell degraded enforcement apart from a real allowance.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from wellsignal.shared.utils import hash_identifier
from .config import RateLimitPolicy
from .repositories import RateLimitRepository

logger = logging.getLogger(__name__)


class RateLimitStatus(Enum):
    ALLOWED = "allowed"
    DENIED = "denied"
    CHECK_FAILED = "check_failed"


@dataclass(frozen=True)
class RateLimitDecision:
    status: RateLimitStatus
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def may_proceed(self) -> bool:
        """Fail closed on DENIED, open on CHECK_FAILED."""
        return self.status is not RateLimitStatus.DENIED


class RateLimitGuard:
    """Consults the counter for one (user, action) pair per call."""

    def __init__(
        self,
        repository: RateLimitRepository,
        policy: Optional[RateLimitPolicy] = None,
    ):
        self.repository = repository
        self.policy = policy or RateLimitPolicy()

    def check(self, user_id: str) -> RateLimitDecision:
        """Check and count one request.

        Never raises for counter failures; those come back as CHECK_FAILED.
        """
        try:
            result = self.repository.check_rate_limit(
                user_id=user_id,
                action=self.policy.action,
                max_requests=self.policy.max_requests,
                window_minutes=self.policy.window_minutes,
            )
        except Exception as e:
            logger.error(
                "RATE_LIMIT_CHECK_ERROR",
                extra={
                    "user_id_hash": hash_identifier(user_id),
                    "action": self.policy.action,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return RateLimitDecision(status=RateLimitStatus.CHECK_FAILED, error=str(e))

        if not result.allowed:
            return RateLimitDecision(
                status=RateLimitStatus.DENIED,
                remaining=0,
                reset_at=result.reset_at,
            )

        return RateLimitDecision(
            status=RateLimitStatus.ALLOWED,
            remaining=result.remaining,
            reset_at=result.reset_at,
        )
