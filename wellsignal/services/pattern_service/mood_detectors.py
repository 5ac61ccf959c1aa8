"""Mood pattern detectors over the daily mood sequence.

Each detector is a pure function of (daily moods, rules) returning at most
one candidate. The sequence is most-recent-day first.
"""
from typing import List, Optional, Sequence

from wellsignal.shared.models import (
    AlertCandidate,
    PatternGroupResult,
    PatternStatus,
    Severity,
)
from .aggregator import DailyMood
from .config import MoodRules

GROUP_NAME = "moodTrend"

LOW_MOOD_MESSAGE = (
    "We've noticed you've been feeling a bit down for {days} days in a row. "
    "That's completely okay, everyone goes through tough patches. Taking small "
    "steps like a short walk, talking to a friend, or doing something you enjoy "
    "might help lift your spirits."
)
LOW_MOOD_ACTION = "Consider journaling about what's on your mind, or reaching out to someone you trust."

STRESS_MESSAGE = (
    "It looks like stress levels have been higher than usual lately. This is your "
    "body's way of telling you it needs some extra care. Deep breathing, taking "
    "breaks, or stepping away from stressors when possible can make a real difference."
)
STRESS_ACTION = "Try a 5-minute breathing exercise or a short meditation session."

VOLATILITY_MESSAGE = (
    "Your moods seem to be changing quite a bit lately. This can sometimes happen "
    "during stressful periods or life transitions. Keeping a regular routine with "
    "consistent sleep and meal times might help bring some stability."
)
VOLATILITY_ACTION = "Consider establishing a calming evening routine."


def low_mood_streak(daily_moods: Sequence[DailyMood], rules: MoodRules) -> int:
    """Consecutive low-mood days counting back from the most recent day.

    Stops at the first day that is not low; unknown moods are not low.
    """
    streak = 0
    for entry in daily_moods:
        if entry.parsed not in rules.low_moods:
            break
        streak += 1
    return streak


def detect_low_mood_streak(
    daily_moods: Sequence[DailyMood],
    rules: MoodRules,
) -> Optional[AlertCandidate]:
    if len(daily_moods) < rules.min_days:
        return None

    streak = low_mood_streak(daily_moods, rules)
    if streak < rules.streak_threshold:
        return None

    return AlertCandidate(
        alert_type="wellness_check",
        message=LOW_MOOD_MESSAGE.format(days=streak),
        severity=Severity.MEDIUM if streak >= rules.streak_escalation else Severity.LOW,
        suggested_action=LOW_MOOD_ACTION,
    )


def _stress_count(entries: Sequence[DailyMood], rules: MoodRules) -> int:
    return sum(1 for entry in entries if entry.parsed in rules.stress_moods)


def detect_stress_spike(
    daily_moods: Sequence[DailyMood],
    rules: MoodRules,
) -> Optional[AlertCandidate]:
    """Recent window vs. the window just before it.

    Fires when the recent window has at least ``stress_min_recent`` stress
    days and strictly more than prior + ``stress_margin``.
    """
    if len(daily_moods) < rules.min_days:
        return None

    size = rules.stress_window
    recent = _stress_count(daily_moods[:size], rules)
    prior = _stress_count(daily_moods[size:size * 2], rules)

    if recent >= rules.stress_min_recent and recent > prior + rules.stress_margin:
        return AlertCandidate(
            alert_type="stress_pattern",
            message=STRESS_MESSAGE,
            severity=Severity.MEDIUM,
            suggested_action=STRESS_ACTION,
        )
    return None


def mood_changes(daily_moods: Sequence[DailyMood], window: int) -> int:
    """Adjacent-pair mood changes among the first ``window`` entries."""
    entries = daily_moods[:window]
    return sum(
        1 for previous, current in zip(entries, entries[1:])
        if current.normalized != previous.normalized
    )


def detect_mood_volatility(
    daily_moods: Sequence[DailyMood],
    rules: MoodRules,
) -> Optional[AlertCandidate]:
    if len(daily_moods) < max(rules.min_days, rules.volatility_min_entries):
        return None

    if mood_changes(daily_moods, rules.volatility_window) < rules.volatility_threshold:
        return None

    return AlertCandidate(
        alert_type="mood_variability",
        message=VOLATILITY_MESSAGE,
        severity=Severity.LOW,
        suggested_action=VOLATILITY_ACTION,
    )


MOOD_DETECTORS = (
    detect_low_mood_streak,
    detect_stress_spike,
    detect_mood_volatility,
)


def evaluate_mood_patterns(
    daily_moods: Sequence[DailyMood],
    rules: MoodRules,
) -> PatternGroupResult:
    """Run every mood detector.

    The group counts as analyzed only when the distinct-day precondition holds.
    """
    if len(daily_moods) < rules.min_days:
        return PatternGroupResult.insufficient(GROUP_NAME)

    candidates: List[AlertCandidate] = []
    for detector in MOOD_DETECTORS:
        candidate = detector(daily_moods, rules)
        if candidate is not None:
            candidates.append(candidate)

    return PatternGroupResult(
        name=GROUP_NAME,
        status=PatternStatus.ANALYZED,
        candidates=candidates,
    )
