"""Alert emitter - persists surviving candidates as user alerts."""
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Sequence

from wellsignal.shared.models import Alert, AlertCandidate
from wellsignal.shared.utils import hash_identifier, utc_now
from .repositories import AlertRepository

logger = logging.getLogger(__name__)

SUGGESTION_SEPARATOR = "\n\n💡 Suggestion: "


def render_message(candidate: AlertCandidate) -> str:
    """Message body with the suggested action appended, if there is one."""
    if candidate.suggested_action:
        return f"{candidate.message}{SUGGESTION_SEPARATOR}{candidate.suggested_action}"
    return candidate.message


class AlertEmitter:
    """Writes one batch of alerts per analysis run."""

    def __init__(self, alert_repository: AlertRepository):
        self.alert_repository = alert_repository

    def build_alerts(
        self,
        user_id: str,
        candidates: Sequence[AlertCandidate],
        now: datetime,
    ) -> List[Alert]:
        return [
            Alert(
                id=str(uuid.uuid4()),
                user_id=user_id,
                alert_type=candidate.alert_type,
                message=render_message(candidate),
                severity=candidate.severity,
                is_read=False,
                created_at=now,
            )
            for candidate in candidates
        ]

    def emit(
        self,
        user_id: str,
        candidates: Sequence[AlertCandidate],
        now: Optional[datetime] = None,
    ) -> int:
        """Persist candidates in a single batch.

        No write is issued for an empty list.

        Returns:
            Number of alerts persisted

        Raises:
            RepositoryError: If the batch write fails
        """
        if not candidates:
            return 0

        alerts = self.build_alerts(user_id, candidates, now or utc_now())
        written = self.alert_repository.insert_many(alerts)

        logger.info(
            "ALERTS_EMITTED",
            extra={
                "user_id_hash": hash_identifier(user_id),
                "alert_count": written,
                "alert_types": [alert.alert_type for alert in alerts],
            }
        )
        return written
