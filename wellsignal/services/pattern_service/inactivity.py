"""Inactivity detector - check-in reminder for a mid-range gap.

Very recent gaps are no concern, and users dormant past the band are left
alone rather than nagged.
"""
import math
from datetime import datetime
from typing import Optional, Sequence

from wellsignal.shared.models import (
    AlertCandidate,
    CheckIn,
    PatternGroupResult,
    PatternStatus,
    Severity,
)
from wellsignal.shared.utils import as_utc
from .config import InactivityRules

GROUP_NAME = "checkInActivity"

REMINDER_MESSAGE = (
    "It's been {days} days since your last check-in. Regular check-ins help us "
    "understand how you're doing and provide better support. We'd love to hear "
    "from you when you have a moment!"
)
REMINDER_ACTION = "Take a moment to log how you're feeling today."


def days_since_last_check_in(
    check_ins: Sequence[CheckIn],
    now: datetime,
    rules: InactivityRules,
) -> int:
    """Whole days elapsed since the newest check-in (floored).

    Returns the sentinel from ``rules`` when there are no check-ins.
    """
    if not check_ins:
        return rules.no_check_in_sentinel

    newest = max(as_utc(c.created_at) for c in check_ins)
    elapsed = (as_utc(now) - newest).total_seconds()
    return max(0, math.floor(elapsed / 86400))


def detect_inactivity(days: int, rules: InactivityRules) -> Optional[AlertCandidate]:
    if not rules.min_days <= days < rules.max_days:
        return None

    return AlertCandidate(
        alert_type="check_in_reminder",
        message=REMINDER_MESSAGE.format(days=days),
        severity=Severity.LOW,
        suggested_action=REMINDER_ACTION,
    )


def evaluate_inactivity(
    check_ins: Sequence[CheckIn],
    now: datetime,
    rules: InactivityRules,
) -> PatternGroupResult:
    if not check_ins:
        return PatternGroupResult.insufficient(GROUP_NAME)

    candidate = detect_inactivity(days_since_last_check_in(check_ins, now, rules), rules)
    return PatternGroupResult(
        name=GROUP_NAME,
        status=PatternStatus.ANALYZED,
        candidates=[candidate] if candidate else [],
    )
