"""Persistence collaborators for the pattern service.

Read side: check-ins, user chat messages, recent alerts.
Write side: alert batches, read-marking, and the per-user rate-limit counter.

Each repository works against PostgreSQL when given a ConnectionManager and
against process memory otherwise.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import psycopg2

from wellsignal.shared.database import (
    BaseRepository,
    ConnectionManager,
    NotFoundError,
    RepositoryError,
)
from wellsignal.shared.models import (
    Alert,
    ChatMessage,
    CheckIn,
    MessageRole,
    SEVERITY_VOCABULARIES,
    Severity,
)
from wellsignal.shared.utils import as_utc, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


class CheckInRepository(BaseRepository[CheckIn]):
    """Read access to ``check_ins``.

    Expected columns: id, user_id, mood, journal, created_at
    """

    COLUMNS = "id, user_id, mood, journal, created_at"

    def __init__(self, connection_manager: Optional[ConnectionManager] = None):
        super().__init__(connection_manager, "check_ins")

    def _row_to_entity(self, row: tuple) -> CheckIn:
        return CheckIn(
            id=str(row[0]),
            user_id=str(row[1]),
            mood=row[2],
            journal=row[3],
            created_at=as_utc(row[4]),
        )

    def _entity_to_params(self, entity: CheckIn) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "user_id": entity.user_id,
            "mood": entity.mood,
            "journal": entity.journal,
            "created_at": entity.created_at,
        }

    def find_since(
        self,
        user_id: str,
        since: datetime,
        limit: int = DEFAULT_LIMIT,
    ) -> List[CheckIn]:
        """Check-ins for a user created at or after ``since``.

        Returns:
            At most ``limit`` check-ins, newest first
        """
        if not self.uses_database:
            matches = [
                c for c in self._memory_snapshot()
                if c.user_id == user_id and as_utc(c.created_at) >= since
            ]
            matches.sort(key=lambda c: as_utc(c.created_at), reverse=True)
            return matches[:limit]

        return self._fetch(
            f"""
            SELECT {self.COLUMNS} FROM {self.table_name}
            WHERE user_id = %s AND created_at >= %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (user_id, since, limit),
        )


class ChatMessageRepository(BaseRepository[ChatMessage]):
    """Read access to ``chat_messages``.

    Expected columns: id, user_id, role, content, message_type, created_at
    """

    COLUMNS = "id, user_id, role, content, message_type, created_at"

    def __init__(self, connection_manager: Optional[ConnectionManager] = None):
        super().__init__(connection_manager, "chat_messages")

    def _row_to_entity(self, row: tuple) -> ChatMessage:
        return ChatMessage(
            id=str(row[0]),
            user_id=str(row[1]),
            role=MessageRole(row[2]),
            content=row[3] or "",
            message_type=row[4],
            created_at=as_utc(row[5]),
        )

    def _entity_to_params(self, entity: ChatMessage) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "user_id": entity.user_id,
            "role": entity.role.value,
            "content": entity.content,
            "message_type": entity.message_type,
            "created_at": entity.created_at,
        }

    def find_user_messages_since(
        self,
        user_id: str,
        since: datetime,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ChatMessage]:
        """User-authored messages created at or after ``since``.

        Assistant replies are excluded.

        Returns:
            At most ``limit`` messages, newest first
        """
        if not self.uses_database:
            matches = [
                m for m in self._memory_snapshot()
                if m.user_id == user_id
                and m.role is MessageRole.USER
                and as_utc(m.created_at) >= since
            ]
            matches.sort(key=lambda m: as_utc(m.created_at), reverse=True)
            return matches[:limit]

        return self._fetch(
            f"""
            SELECT {self.COLUMNS} FROM {self.table_name}
            WHERE user_id = %s AND role = %s AND created_at >= %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (user_id, MessageRole.USER.value, since, limit),
        )


class AlertRepository(BaseRepository[Alert]):
    """Append-only store for pattern alerts.

    Expected columns: id, user_id, alert_type, message, severity, is_read, created_at

    Rows in either severity vocabulary are readable; new rows are written
    in ``severity_vocabulary``.
    """

    COLUMNS = "id, user_id, alert_type, message, severity, is_read, created_at"

    def __init__(
        self,
        connection_manager: Optional[ConnectionManager] = None,
        severity_vocabulary: str = "standard",
    ):
        if severity_vocabulary not in SEVERITY_VOCABULARIES:
            raise ValueError(f"Unknown severity vocabulary: {severity_vocabulary!r}")
        super().__init__(connection_manager, "alerts")
        self.severity_vocabulary = severity_vocabulary

    def _row_to_entity(self, row: tuple) -> Alert:
        return Alert(
            id=str(row[0]),
            user_id=str(row[1]),
            alert_type=row[2],
            message=row[3],
            severity=Severity.parse(row[4]),
            is_read=bool(row[5]),
            created_at=as_utc(row[6]),
        )

    def _entity_to_params(self, entity: Alert) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "user_id": entity.user_id,
            "alert_type": entity.alert_type,
            "message": entity.message,
            "severity": entity.severity.storage_value(self.severity_vocabulary),
            "is_read": entity.is_read,
            "created_at": entity.created_at,
        }

    def find_recent(self, user_id: str, since: datetime) -> List[Alert]:
        """Alerts for a user created at or after ``since``, newest first.

        Used as the dedup lookup, so it is not capped.
        """
        if not self.uses_database:
            matches = [
                a for a in self._memory_snapshot()
                if a.user_id == user_id and as_utc(a.created_at) >= since
            ]
            matches.sort(key=lambda a: as_utc(a.created_at), reverse=True)
            return matches

        return self._fetch(
            f"""
            SELECT {self.COLUMNS} FROM {self.table_name}
            WHERE user_id = %s AND created_at >= %s
            ORDER BY created_at DESC
            """,
            (user_id, since),
        )

    def find_by_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = DEFAULT_LIMIT,
    ) -> List[Alert]:
        """A user's alerts, newest first."""
        if not self.uses_database:
            matches = [
                a for a in self._memory_snapshot()
                if a.user_id == user_id and not (unread_only and a.is_read)
            ]
            matches.sort(key=lambda a: as_utc(a.created_at), reverse=True)
            return matches[:limit]

        query = f"SELECT {self.COLUMNS} FROM {self.table_name} WHERE user_id = %s"
        if unread_only:
            query += " AND is_read = false"
        query += " ORDER BY created_at DESC LIMIT %s"

        return self._fetch(query, (user_id, limit))

    def mark_read(self, user_id: str, alert_id: str) -> None:
        """Mark one of the user's alerts as read.

        Raises:
            NotFoundError: If no such alert belongs to the user
        """
        if not self.uses_database:
            with self._memory_lock:
                for index, alert in enumerate(self._memory_store):
                    if alert.id == alert_id and alert.user_id == user_id:
                        self._memory_store[index] = replace(alert, is_read=True)
                        return
            raise NotFoundError(f"Alert {alert_id} not found")

        updated = self._execute(
            f"UPDATE {self.table_name} SET is_read = true WHERE id = %s AND user_id = %s",
            (alert_id, user_id),
        )
        if updated == 0:
            raise NotFoundError(f"Alert {alert_id} not found")

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread alert of the user as read.

        Returns:
            Number of alerts updated
        """
        if not self.uses_database:
            updated = 0
            with self._memory_lock:
                for index, alert in enumerate(self._memory_store):
                    if alert.user_id == user_id and not alert.is_read:
                        self._memory_store[index] = replace(alert, is_read=True)
                        updated += 1
            return updated

        return self._execute(
            f"UPDATE {self.table_name} SET is_read = true WHERE user_id = %s AND is_read = false",
            (user_id,),
        )


@dataclass(frozen=True)
class RateLimitResult:
    """Answer from the rate-limit counter."""
    allowed: bool
    remaining: int
    reset_at: datetime


@dataclass(frozen=True)
class RateLimitHit:
    user_id: str
    action: str
    created_at: datetime
    window_minutes: int = 60

    def expired(self, now: datetime) -> bool:
        return self.created_at + timedelta(minutes=self.window_minutes) <= now


class RateLimitRepository(BaseRepository[RateLimitHit]):
    """Sliding-window request counter per (user, action).

    On PostgreSQL this delegates to the ``check_rate_limit`` database
    function, which counts and records the request atomically. The memory
    backend does the same under a lock.
    """

    def __init__(self, connection_manager: Optional[ConnectionManager] = None):
        super().__init__(connection_manager, "rate_limits")

    def _row_to_entity(self, row: tuple) -> RateLimitHit:
        return RateLimitHit(user_id=str(row[0]), action=row[1], created_at=as_utc(row[2]))

    def _entity_to_params(self, entity: RateLimitHit) -> Dict[str, Any]:
        return {
            "user_id": entity.user_id,
            "action": entity.action,
            "created_at": entity.created_at,
        }

    def check_rate_limit(
        self,
        user_id: str,
        action: str,
        max_requests: int,
        window_minutes: int,
        now: Optional[datetime] = None,
    ) -> RateLimitResult:
        """Count requests in the window and record this one if under the limit.

        Raises:
            RepositoryError: If the counter cannot be consulted
        """
        if not self.uses_database:
            return self._check_memory(user_id, action, max_requests, window_minutes, now or utc_now())

        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT public.check_rate_limit(%s, %s, %s, %s)",
                        (user_id, action, max_requests, window_minutes),
                    )
                    row = cur.fetchone()
        except psycopg2.Error as e:
            logger.error(
                "RATE_LIMIT_QUERY_FAILED",
                extra={"action": action, "error": str(e)}
            )
            raise RepositoryError(f"Rate limit check failed: {e}") from e

        if not row or not isinstance(row[0], dict):
            raise RepositoryError("Rate limit check returned no result")

        payload = row[0]
        return RateLimitResult(
            allowed=bool(payload["allowed"]),
            remaining=int(payload.get("remaining", 0)),
            reset_at=parse_timestamp(payload["reset_at"]),
        )

    def _check_memory(
        self,
        user_id: str,
        action: str,
        max_requests: int,
        window_minutes: int,
        now: datetime,
    ) -> RateLimitResult:
        window = timedelta(minutes=window_minutes)
        window_start = now - window

        with self._memory_lock:
            # Expired hits are dropped for every key, not just this one
            self._memory_store = [hit for hit in self._memory_store if not hit.expired(now)]
            in_window = sorted(
                hit.created_at for hit in self._memory_store
                if hit.user_id == user_id and hit.action == action and hit.created_at > window_start
            )
            reset_at = (in_window[0] if in_window else now) + window

            if len(in_window) >= max_requests:
                return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

            self._memory_store.append(RateLimitHit(
                user_id=user_id,
                action=action,
                created_at=now,
                window_minutes=window_minutes,
            ))
            return RateLimitResult(
                allowed=True,
                remaining=max_requests - len(in_window) - 1,
                reset_at=reset_at,
            )
