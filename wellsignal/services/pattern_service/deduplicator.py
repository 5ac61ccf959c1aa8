"""Alert deduplicator.

An alert is identified by its type plus the first characters of its message
as the detector wrote it (before the suggestion line is appended). A
candidate whose key matches any alert raised in the dedup window is dropped.
"""
import logging
from typing import Iterable, List, Sequence, Set

from wellsignal.shared.models import Alert, AlertCandidate
from .emitter import SUGGESTION_SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_PREFIX_LENGTH = 50


def dedup_key(alert_type: str, message: str, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> str:
    return f"{alert_type}:{message[:prefix_length]}"


def strip_suggestion(message: str) -> str:
    """Message body as the detector produced it."""
    return message.split(SUGGESTION_SEPARATOR, 1)[0]


def existing_keys(
    alerts: Iterable[Alert],
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> Set[str]:
    return {
        dedup_key(alert.alert_type, strip_suggestion(alert.message), prefix_length)
        for alert in alerts
    }


def filter_duplicates(
    candidates: Sequence[AlertCandidate],
    existing_alerts: Iterable[Alert],
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> List[AlertCandidate]:
    """Drop candidates already raised; order of the survivors is preserved."""
    seen = existing_keys(existing_alerts, prefix_length)
    survivors = [
        candidate for candidate in candidates
        if dedup_key(candidate.alert_type, candidate.message, prefix_length) not in seen
    ]

    logger.info(
        "ALERTS_DEDUPLICATED",
        extra={
            "candidate_count": len(candidates),
            "existing_key_count": len(seen),
            "survivor_count": len(survivors),
        }
    )
    return survivors
