"""Pattern Service: multi-day wellness pattern detection and alerting.

Scans a user's mood check-ins, journal entries and chat messages over a
trailing window, detects multi-day patterns and raises user-facing alerts.

Pattern groups:
- Mood trend: low-mood streaks, stress spikes, mood volatility
- Symptom patterns: recurring symptom mentions in chat
- Lifestyle indicators: isolation and work-stress themes in journals
- Check-in activity: reminders after a mid-length gap

Endpoints:
- POST /analyze-patterns - Run analysis for the authenticated user
- GET /alerts - List the user's alerts
- POST /alerts/<id>/read, POST /alerts/read-all - Mark alerts read
- GET /health, GET /ready - Health checks
"""

from .config import AnalysisWindow, PatternConfig
from .orchestrator import (
    AnalysisSummary,
    AlertPersistenceError,
    PatternAnalysisError,
    PatternAnalysisOrchestrator,
    RateLimitExceededError,
    SignalLoadError,
)
from .rate_limit import RateLimitDecision, RateLimitGuard, RateLimitStatus
from .signal_loader import SignalLoader, SignalSnapshot

__all__ = [
    "AnalysisWindow",
    "PatternConfig",
    "AnalysisSummary",
    "AlertPersistenceError",
    "PatternAnalysisError",
    "PatternAnalysisOrchestrator",
    "RateLimitExceededError",
    "SignalLoadError",
    "RateLimitDecision",
    "RateLimitGuard",
    "RateLimitStatus",
    "SignalLoader",
    "SignalSnapshot",
]
