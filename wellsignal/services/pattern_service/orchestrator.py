"""Pattern analysis orchestrator.

Runs one analysis for one user:
rate-limit guard -> signal load -> detectors -> dedup -> emit -> summary.

Per-run state lives only in local variables; anything that must survive
between runs goes through the repositories.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from wellsignal.shared.database import RepositoryError
from wellsignal.shared.models import AlertCandidate, PatternGroupResult
from wellsignal.shared.utils import days_ago, hash_identifier, utc_now
from .aggregator import aggregate_daily_moods
from .config import AnalysisWindow, PatternConfig
from .deduplicator import filter_duplicates
from .emitter import AlertEmitter
from .inactivity import evaluate_inactivity
from .lifestyle_extractor import evaluate_lifestyle_patterns
from .mood_detectors import evaluate_mood_patterns
from .rate_limit import RateLimitGuard, RateLimitStatus
from .repositories import AlertRepository
from .signal_loader import SignalLoader
from .symptom_extractor import evaluate_symptom_patterns

logger = logging.getLogger(__name__)


class PatternAnalysisError(Exception):
    """Base exception for a failed analysis run."""
    pass


class RateLimitExceededError(PatternAnalysisError):
    """The user has used up their analyses for the current window."""

    def __init__(self, reset_at: Optional[datetime] = None):
        super().__init__("Pattern analysis rate limit exceeded")
        self.reset_at = reset_at


class SignalLoadError(PatternAnalysisError):
    """Signals or existing alerts could not be read; nothing was analyzed."""
    pass


class AlertPersistenceError(PatternAnalysisError):
    """Detection finished but the new alerts could not be saved."""

    def __init__(self, message: str, detected_count: int):
        super().__init__(message)
        self.detected_count = detected_count


@dataclass(frozen=True)
class AnalysisSummary:
    """Result returned to the caller of one analysis run."""
    alerts_generated: int
    patterns: Dict[str, str] = field(default_factory=dict)
    candidate_count: int = 0

    def to_dict(self) -> dict:
        return {
            "alertsGenerated": self.alerts_generated,
            "patterns": dict(self.patterns),
        }


class PatternAnalysisOrchestrator:
    """Sequences the pattern-detection components for a single user."""

    def __init__(
        self,
        signal_loader: SignalLoader,
        alert_repository: AlertRepository,
        rate_limit_guard: RateLimitGuard,
        config: Optional[PatternConfig] = None,
        emitter: Optional[AlertEmitter] = None,
    ):
        """Initialize orchestrator with dependencies.

        Args:
            signal_loader: Reads check-ins and messages
            alert_repository: Source of recent alerts for dedup
            rate_limit_guard: Per-user analysis quota
            config: Rule tables and limits
            emitter: Alert writer (defaults to one over alert_repository)
        """
        self.signal_loader = signal_loader
        self.alert_repository = alert_repository
        self.rate_limit_guard = rate_limit_guard
        self.config = config or PatternConfig()
        self.emitter = emitter or AlertEmitter(alert_repository)

    def analyze(
        self,
        user_id: str,
        window: AnalysisWindow = AnalysisWindow.FULL,
        now: Optional[datetime] = None,
    ) -> AnalysisSummary:
        """Analyze a user's recent signals and persist any new alerts.

        Args:
            user_id: Authenticated user identifier
            window: Lookback preset
            now: Reference time (defaults to current UTC time)

        Returns:
            AnalysisSummary with the number of alerts written and the
            status of every pattern group

        Raises:
            RateLimitExceededError: Quota used up; nothing was analyzed
            SignalLoadError: A read failed; no detector ran
            AlertPersistenceError: Alerts were detected but not saved

        Logs:
            - PATTERN_ANALYSIS_STARTED / PATTERN_ANALYSIS_COMPLETED
            - RATE_LIMIT_EXCEEDED, RATE_LIMIT_CHECK_DEGRADED
            - SIGNAL_LOAD_FAILED, ALERT_PERSIST_FAILED
        """
        start_time = time.perf_counter()
        now = now or utc_now()
        user_id_hash = hash_identifier(user_id)

        logger.info(
            "PATTERN_ANALYSIS_STARTED",
            extra={"user_id_hash": user_id_hash, "lookback_days": window.days}
        )

        self._enforce_rate_limit(user_id, user_id_hash)

        try:
            snapshot = self.signal_loader.load(user_id, window.days, now=now)
            existing_alerts = self.alert_repository.find_recent(
                user_id, days_ago(now, self.config.dedup_window_days)
            )
        except RepositoryError as e:
            logger.error(
                "SIGNAL_LOAD_FAILED",
                extra={"user_id_hash": user_id_hash, "error": str(e)}
            )
            raise SignalLoadError(f"Failed to load signals: {e}") from e

        groups = self._evaluate_groups(snapshot.check_ins, snapshot.messages, now)
        candidates: List[AlertCandidate] = [
            candidate for group in groups for candidate in group.candidates
        ]
        survivors = filter_duplicates(
            candidates, existing_alerts, self.config.dedup_prefix_length
        )

        try:
            written = self.emitter.emit(user_id, survivors, now=now)
        except RepositoryError as e:
            logger.error(
                "ALERT_PERSIST_FAILED",
                extra={
                    "user_id_hash": user_id_hash,
                    "survivor_count": len(survivors),
                    "error": str(e),
                }
            )
            raise AlertPersistenceError(
                f"Detected {len(survivors)} alerts but failed to save them: {e}",
                detected_count=len(survivors),
            ) from e

        summary = AnalysisSummary(
            alerts_generated=written,
            patterns={group.name: group.status.value for group in groups},
            candidate_count=len(candidates),
        )

        logger.info(
            "PATTERN_ANALYSIS_COMPLETED",
            extra={
                "user_id_hash": user_id_hash,
                "candidate_count": len(candidates),
                "alerts_generated": written,
                "patterns": summary.patterns,
                "latency_ms": (time.perf_counter() - start_time) * 1000,
            }
        )
        return summary

    def _enforce_rate_limit(self, user_id: str, user_id_hash: str) -> None:
        decision = self.rate_limit_guard.check(user_id)

        if not decision.may_proceed:
            logger.warning(
                "RATE_LIMIT_EXCEEDED",
                extra={"user_id_hash": user_id_hash, "reset_at": str(decision.reset_at)}
            )
            raise RateLimitExceededError(reset_at=decision.reset_at)

        if decision.status is RateLimitStatus.CHECK_FAILED:
            # Proceeds without a quota check for this run
            logger.warning(
                "RATE_LIMIT_CHECK_DEGRADED",
                extra={"user_id_hash": user_id_hash, "error": decision.error}
            )

    def _evaluate_groups(self, check_ins, messages, now: datetime) -> List[PatternGroupResult]:
        config = self.config
        return [
            evaluate_mood_patterns(aggregate_daily_moods(check_ins), config.mood),
            evaluate_symptom_patterns(messages, config.symptom_rules),
            evaluate_lifestyle_patterns(
                check_ins, config.lifestyle_rules, config.lifestyle_min_check_ins
            ),
            evaluate_inactivity(check_ins, now, config.inactivity),
        ]
