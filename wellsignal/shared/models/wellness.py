"""Wellness signal and alert domain models.

Check-ins and chat messages are written by other parts of the platform and
are read-only here. Alerts are written by the pattern service and only ever
appended; the one mutation allowed afterwards is flipping ``is_read``.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class Mood(Enum):
    """Closed mood vocabulary accepted by the check-in flow.

    The first five values are the original check-in choices; the rest are
    the extended wellness moods.
    """
    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    SAD = "sad"
    ANGRY = "angry"
    ANXIOUS = "anxious"
    STRESSED = "stressed"
    OVERWHELMED = "overwhelmed"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Mood"]:
        """Map a stored mood string onto the vocabulary.

        Returns None for empty or unrecognized values instead of raising,
        so a bad row never takes down a detector.
        """
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class MessageRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Severity(Enum):
    """Alert severity shown to the user.

    Some deployments store the info/warning/critical vocabulary instead;
    ``parse`` accepts both and ``storage_value`` writes either.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Severity":
        """Map a stored severity onto the enum; unknown values read as LOW."""
        normalized = (value or "").strip().lower()
        if normalized in _LEGACY_SEVERITIES:
            return _LEGACY_SEVERITIES[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return cls.LOW

    def storage_value(self, vocabulary: str = "standard") -> str:
        if vocabulary == "legacy":
            return _LEGACY_NAMES[self]
        return self.value


_LEGACY_SEVERITIES = {
    "info": Severity.LOW,
    "warning": Severity.MEDIUM,
    "critical": Severity.HIGH,
}
_LEGACY_NAMES = {severity: name for name, severity in _LEGACY_SEVERITIES.items()}

SEVERITY_VOCABULARIES = ("standard", "legacy")


class PatternStatus(Enum):
    """Whether a pattern group had enough data to be evaluated."""
    ANALYZED = "analyzed"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class CheckIn:
    """A single mood check-in, optionally with a journal entry."""
    id: str
    user_id: str
    mood: str               # Raw stored value; see Mood.parse()
    created_at: datetime
    journal: Optional[str] = None

    @property
    def has_journal(self) -> bool:
        return bool(self.journal and self.journal.strip())


@dataclass(frozen=True)
class ChatMessage:
    """A chat message. Only USER messages feed the analyzer."""
    id: str
    user_id: str
    role: MessageRole
    content: str
    created_at: datetime
    message_type: str = "wellness"


@dataclass(frozen=True)
class AlertCandidate:
    """An alert proposed by a detector, before dedup and persistence."""
    alert_type: str
    message: str
    severity: Severity
    suggested_action: Optional[str] = None


@dataclass(frozen=True)
class Alert:
    """A persisted, user-facing alert."""
    id: str
    user_id: str
    alert_type: str
    message: str
    severity: Severity
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "alert_type": self.alert_type,
            "message": self.message,
            "severity": self.severity.value,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class PatternGroupResult:
    """Outcome of evaluating one pattern group (mood, symptoms, ...).

    ``status`` reflects whether the group's minimum-data precondition held,
    independent of whether any candidate fired.
    """
    name: str
    status: PatternStatus
    candidates: List[AlertCandidate] = field(default_factory=list)

    @classmethod
    def insufficient(cls, name: str) -> "PatternGroupResult":
        return cls(name=name, status=PatternStatus.INSUFFICIENT_DATA)
