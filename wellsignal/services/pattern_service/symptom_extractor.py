"""Symptom extractor - recurring symptom mentions in user chat messages.

Counts are distinct UTC days per category. Mentioning a headache five times
on one day counts once, so same-day repetition alone never fires a rule.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Sequence, Set

from wellsignal.shared.models import (
    AlertCandidate,
    ChatMessage,
    MessageRole,
    PatternGroupResult,
    PatternStatus,
)
from wellsignal.shared.utils import utc_day
from .config import KeywordRule

logger = logging.getLogger(__name__)

GROUP_NAME = "symptomPatterns"


@dataclass
class SymptomTally:
    """Per-category evidence gathered from the messages."""
    category: str
    days: Set[date] = field(default_factory=set)
    message_hits: int = 0

    @property
    def day_count(self) -> int:
        return len(self.days)


def tally_symptom_days(
    messages: Iterable[ChatMessage],
    rules: Sequence[KeywordRule],
) -> Dict[str, SymptomTally]:
    """Record, per category, the days on which any keyword appeared.

    Assistant messages are ignored even if passed in.
    """
    tallies = {rule.category: SymptomTally(category=rule.category) for rule in rules}

    for message in messages:
        if message.role is not MessageRole.USER:
            continue
        content = (message.content or "").lower()
        if not content:
            continue
        day = utc_day(message.created_at)
        for rule in rules:
            if rule.matches(content):
                tally = tallies[rule.category]
                tally.days.add(day)
                tally.message_hits += 1

    return tallies


def detect_symptom_patterns(
    tallies: Dict[str, SymptomTally],
    rules: Sequence[KeywordRule],
) -> List[AlertCandidate]:
    """One candidate per category whose distinct-day count meets its threshold."""
    candidates = []
    for rule in rules:
        if not rule.can_fire:
            continue
        if tallies[rule.category].day_count >= rule.threshold:
            candidates.append(AlertCandidate(
                alert_type=rule.alert_type,
                message=rule.message,
                severity=rule.severity,
                suggested_action=rule.suggested_action,
            ))
    return candidates


def evaluate_symptom_patterns(
    messages: Sequence[ChatMessage],
    rules: Sequence[KeywordRule],
) -> PatternGroupResult:
    if not messages:
        return PatternGroupResult.insufficient(GROUP_NAME)

    tallies = tally_symptom_days(messages, rules)

    logger.debug(
        "SYMPTOM_TALLY_COMPLETED",
        extra={
            "day_counts": {category: t.day_count for category, t in tallies.items()},
            "message_hits": {category: t.message_hits for category, t in tallies.items()},
        }
    )

    return PatternGroupResult(
        name=GROUP_NAME,
        status=PatternStatus.ANALYZED,
        candidates=detect_symptom_patterns(tallies, rules),
    )
