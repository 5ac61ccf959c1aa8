"""Lifestyle extractor - indicator keywords in check-in journals.

Counting is per entry: a journal that mentions two isolation keywords still
adds one to ``social_isolation``.
"""
from typing import Dict, Iterable, List, Sequence

from wellsignal.shared.models import (
    AlertCandidate,
    CheckIn,
    PatternGroupResult,
    PatternStatus,
)
from .config import KeywordRule

GROUP_NAME = "lifestyleIndicators"


def count_lifestyle_indicators(
    check_ins: Iterable[CheckIn],
    rules: Sequence[KeywordRule],
) -> Dict[str, int]:
    """Number of journal entries matching each category."""
    counts = {rule.category: 0 for rule in rules}
    for check_in in check_ins:
        if not check_in.has_journal:
            continue
        entry = check_in.journal.lower()
        for rule in rules:
            if rule.matches(entry):
                counts[rule.category] += 1
    return counts


def detect_lifestyle_patterns(
    counts: Dict[str, int],
    rules: Sequence[KeywordRule],
) -> List[AlertCandidate]:
    return [
        AlertCandidate(
            alert_type=rule.alert_type,
            message=rule.message,
            severity=rule.severity,
            suggested_action=rule.suggested_action,
        )
        for rule in rules
        if rule.can_fire and counts.get(rule.category, 0) >= rule.threshold
    ]


def evaluate_lifestyle_patterns(
    check_ins: Sequence[CheckIn],
    rules: Sequence[KeywordRule],
    min_check_ins: int = 5,
) -> PatternGroupResult:
    """Requires ``min_check_ins`` check-ins in the window, journal or not."""
    if len(check_ins) < min_check_ins:
        return PatternGroupResult.insufficient(GROUP_NAME)

    counts = count_lifestyle_indicators(check_ins, rules)
    return PatternGroupResult(
        name=GROUP_NAME,
        status=PatternStatus.ANALYZED,
        candidates=detect_lifestyle_patterns(counts, rules),
    )
