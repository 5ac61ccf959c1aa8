"""Shared domain models for the wellsignal platform."""
from .wellness import (
    Mood,
    MessageRole,
    Severity,
    SEVERITY_VOCABULARIES,
    PatternStatus,
    CheckIn,
    ChatMessage,
    AlertCandidate,
    Alert,
    PatternGroupResult,
)

__all__ = [
    "Mood",
    "MessageRole",
    "Severity",
    "SEVERITY_VOCABULARIES",
    "PatternStatus",
    "CheckIn",
    "ChatMessage",
    "AlertCandidate",
    "Alert",
    "PatternGroupResult",
]
