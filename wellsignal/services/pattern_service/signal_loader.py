"""Signal loader - fetches a user's raw wellness signals for one run."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from wellsignal.shared.models import ChatMessage, CheckIn
from wellsignal.shared.utils import days_ago, hash_identifier, utc_now
from .repositories import ChatMessageRepository, CheckInRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalSnapshot:
    """Signals inside the lookback window, each collection newest first."""
    since: datetime
    check_ins: Tuple[CheckIn, ...] = field(default_factory=tuple)
    messages: Tuple[ChatMessage, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.check_ins and not self.messages


class SignalLoader:
    """Reads check-ins and user chat messages for a trailing window.

    The two reads are independent snapshots; a check-in written between them
    is simply picked up on the next run.
    """

    def __init__(
        self,
        check_in_repository: CheckInRepository,
        message_repository: ChatMessageRepository,
        max_records: int = 100,
    ):
        self.check_in_repository = check_in_repository
        self.message_repository = message_repository
        self.max_records = max_records

    def load(
        self,
        user_id: str,
        lookback_days: int,
        now: Optional[datetime] = None,
    ) -> SignalSnapshot:
        """Load both signal collections.

        Args:
            user_id: User whose signals to load
            lookback_days: Size of the trailing window
            now: Reference time (defaults to current UTC time)

        Returns:
            SignalSnapshot; empty collections when the user has no data

        Raises:
            RepositoryError: Propagated from either read
        """
        since = days_ago(now or utc_now(), lookback_days)

        check_ins = self.check_in_repository.find_since(user_id, since, limit=self.max_records)
        messages = self.message_repository.find_user_messages_since(
            user_id, since, limit=self.max_records
        )

        logger.info(
            "SIGNALS_LOADED",
            extra={
                "user_id_hash": hash_identifier(user_id),
                "lookback_days": lookback_days,
                "check_in_count": len(check_ins),
                "message_count": len(messages),
            }
        )

        return SignalSnapshot(
            since=since,
            check_ins=tuple(check_ins),
            messages=tuple(messages),
        )
