"""Pattern service configuration and rule tables.

Everything a detector needs (mood sets, keyword lists, thresholds, alert
texts) lives here as frozen data and is passed into the detectors, so each
one can be unit tested with an injected table.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from wellsignal.shared.models import Mood, Severity


class AnalysisWindow(Enum):
    """Lookback presets, in days."""
    FULL = 14
    LIGHTWEIGHT = 7
    TREND = 30

    @classmethod
    def from_name(cls, name: Optional[str]) -> "AnalysisWindow":
        """Resolve a request parameter; None means FULL.

        Raises:
            ValueError: For unknown names
        """
        if name is None:
            return cls.FULL
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown analysis window: {name!r}") from None

    @property
    def days(self) -> int:
        return self.value


@dataclass(frozen=True)
class MoodRules:
    """Mood-set membership and thresholds for the daily mood detectors."""
    low_moods: FrozenSet[Mood] = frozenset({
        Mood.SAD, Mood.ANXIOUS, Mood.STRESSED, Mood.OVERWHELMED,
    })
    stress_moods: FrozenSet[Mood] = frozenset({
        Mood.STRESSED, Mood.ANXIOUS, Mood.OVERWHELMED, Mood.ANGRY,
    })

    # Shared precondition: distinct-day samples needed before anything fires
    min_days: int = 3

    streak_threshold: int = 3
    streak_escalation: int = 5          # streak length that bumps to MEDIUM

    stress_window: int = 5              # recent = [0:5], prior = [5:10]
    stress_min_recent: int = 3
    stress_margin: int = 1              # recent must exceed prior + margin

    volatility_window: int = 7
    volatility_min_entries: int = 5
    volatility_threshold: int = 5


@dataclass(frozen=True)
class KeywordRule:
    """One keyword category and the alert it raises.

    A rule with ``threshold`` None is tracked (and logged) but never fires.
    Keywords are matched as lowercase substrings.
    """
    category: str
    keywords: Tuple[str, ...]
    threshold: Optional[int] = None
    alert_type: Optional[str] = None
    severity: Severity = Severity.LOW
    message: str = ""
    suggested_action: Optional[str] = None

    def matches(self, lowered_text: str) -> bool:
        return any(keyword in lowered_text for keyword in self.keywords)

    @property
    def can_fire(self) -> bool:
        return self.threshold is not None and self.alert_type is not None


SYMPTOM_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        category="headache",
        keywords=("headache", "migraine", "head pain", "head hurts"),
        threshold=3,
        alert_type="recurring_symptom",
        severity=Severity.MEDIUM,
        message=(
            "You've mentioned headaches on several different days. While occasional "
            "headaches are common, recurring ones might be worth discussing with a "
            "healthcare provider to rule out any underlying causes and find relief."
        ),
        suggested_action="Consider keeping a headache diary and consulting a healthcare professional.",
    ),
    KeywordRule(
        category="fatigue",
        keywords=("tired", "fatigue", "exhausted", "no energy", "drained", "worn out"),
        threshold=4,
        alert_type="energy_pattern",
        severity=Severity.MEDIUM,
        message=(
            "Feeling tired often can be frustrating. While there are many everyday "
            "causes like sleep, diet, or stress, persistent fatigue is something a "
            "doctor can help investigate. You deserve to feel your best!"
        ),
        suggested_action="Consider consulting a healthcare professional if fatigue persists.",
    ),
    KeywordRule(
        category="sleep",
        keywords=("sleep", "insomnia", "can't sleep", "trouble sleeping", "waking up", "sleepless"),
        threshold=3,
        alert_type="sleep_pattern",
        severity=Severity.LOW,
        message=(
            "Sleep seems to be on your mind lately. Good rest is so important for how "
            "we feel. Small changes like limiting screen time before bed, keeping a "
            "consistent schedule, or creating a relaxing bedtime routine might help "
            "improve your sleep quality."
        ),
        suggested_action="Try reducing caffeine after noon and dimming lights an hour before bed.",
    ),
    KeywordRule(
        category="digestive",
        keywords=("stomach", "nausea", "digestion", "bloating", "appetite"),
    ),
    KeywordRule(
        category="pain",
        keywords=("pain", "ache", "sore", "hurts", "discomfort"),
    ),
    KeywordRule(
        category="anxiety",
        keywords=("anxious", "anxiety", "worried", "panic", "nervous", "racing thoughts"),
        threshold=3,
        alert_type="mental_wellness",
        severity=Severity.MEDIUM,
        message=(
            "Managing anxious feelings can be challenging, but you're not alone. Many "
            "people experience this, and there are wonderful tools and support "
            "available. Breathing exercises, gentle movement, and talking to someone "
            "you trust can all help."
        ),
        suggested_action="Consider speaking with a mental wellness professional for personalized support.",
    ),
)


LIFESTYLE_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        category="poor_diet",
        keywords=("junk food", "skipped meals", "didn't eat", "fast food", "unhealthy", "no appetite"),
    ),
    KeywordRule(
        category="lack_of_exercise",
        keywords=("no exercise", "sedentary", "didn't move", "no activity", "sat all day"),
    ),
    KeywordRule(
        category="social_isolation",
        keywords=("alone", "lonely", "isolated", "no one", "by myself", "didn't see anyone"),
        threshold=3,
        alert_type="social_wellness",
        severity=Severity.LOW,
        message=(
            "Spending time alone can be restorative, but we've noticed you've "
            "mentioned feeling isolated a few times. Human connection is important "
            "for our wellbeing. Even a quick call with a friend or joining an online "
            "community can make a difference."
        ),
        suggested_action="Try reaching out to a friend or family member today.",
    ),
    KeywordRule(
        category="work_stress",
        keywords=("overwork", "deadline", "too much work", "burnout", "exhausted from work"),
        threshold=3,
        alert_type="work_life_balance",
        severity=Severity.MEDIUM,
        message=(
            "Work has been intense lately. Remember, taking breaks isn't just okay, "
            "it's necessary for doing your best work. Your wellbeing matters more "
            "than any deadline."
        ),
        suggested_action="Consider setting boundaries around work hours and taking regular breaks.",
    ),
)


@dataclass(frozen=True)
class InactivityRules:
    """Reminder band: fires for min_days <= gap < max_days."""
    min_days: int = 5
    max_days: int = 14
    no_check_in_sentinel: int = 999


@dataclass(frozen=True)
class RateLimitPolicy:
    action: str = "analyze_patterns"
    max_requests: int = 10
    window_minutes: int = 60


@dataclass(frozen=True)
class PatternConfig:
    """Top-level configuration for one analysis run."""
    mood: MoodRules = field(default_factory=MoodRules)
    symptom_rules: Tuple[KeywordRule, ...] = SYMPTOM_RULES
    lifestyle_rules: Tuple[KeywordRule, ...] = LIFESTYLE_RULES
    inactivity: InactivityRules = field(default_factory=InactivityRules)
    rate_limit: RateLimitPolicy = field(default_factory=RateLimitPolicy)

    lifestyle_min_check_ins: int = 5
    max_records: int = 100
    dedup_window_days: int = 7
    dedup_prefix_length: int = 50
    # "standard" (low/medium/high) or "legacy" (info/warning/critical) alert rows
    severity_vocabulary: str = "standard"

    @classmethod
    def from_env(cls) -> "PatternConfig":
        """Create config, overriding limits and the severity vocabulary from the environment.

        Environment variables:
            ANALYSIS_MAX_RECORDS, DEDUP_WINDOW_DAYS,
            RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_MINUTES,
            INACTIVITY_MIN_DAYS, INACTIVITY_MAX_DAYS,
            ALERT_SEVERITY_VOCABULARY
        """
        return cls(
            max_records=int(os.getenv("ANALYSIS_MAX_RECORDS", "100")),
            dedup_window_days=int(os.getenv("DEDUP_WINDOW_DAYS", "7")),
            severity_vocabulary=os.getenv("ALERT_SEVERITY_VOCABULARY", "standard"),
            rate_limit=RateLimitPolicy(
                max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10")),
                window_minutes=int(os.getenv("RATE_LIMIT_WINDOW_MINUTES", "60")),
            ),
            inactivity=InactivityRules(
                min_days=int(os.getenv("INACTIVITY_MIN_DAYS", "5")),
                max_days=int(os.getenv("INACTIVITY_MAX_DAYS", "14")),
            ),
        )
