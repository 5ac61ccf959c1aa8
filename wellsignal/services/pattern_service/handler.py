"""Pattern Service HTTP handler.

Single trigger point for pattern analysis plus the alert inbox endpoints.
Identity comes from the bearer token; no user id is accepted in the body.

Status mapping: 401 no/invalid identity, 429 rate limited, 500 anything
else (generic message, detail only in the logs).
"""
import logging
import os
from typing import Tuple

from flask import Flask, jsonify, request

from wellsignal.shared.database import NotFoundError, get_connection_manager
from wellsignal.shared.utils import configure_log_salt, hash_identifier
from .auth import AuthenticationError, TokenVerifier
from .config import AnalysisWindow, PatternConfig
from .orchestrator import (
    AlertPersistenceError,
    PatternAnalysisError,
    PatternAnalysisOrchestrator,
    RateLimitExceededError,
)
from .rate_limit import RateLimitGuard
from .repositories import (
    AlertRepository,
    ChatMessageRepository,
    CheckInRepository,
    RateLimitRepository,
)
from .signal_loader import SignalLoader

logger = logging.getLogger(__name__)

app = Flask(__name__)

configure_log_salt(os.getenv("LOG_HASH_SALT", "default_dev_salt_change_in_production_32chars"))

# PostgreSQL when configured, in-process storage otherwise (local dev)
connection_manager = (
    get_connection_manager()
    if os.getenv("DB_HOST") or os.getenv("DB_SECRET_ARN")
    else None
)

config = PatternConfig.from_env()
token_verifier = TokenVerifier.from_env()

check_in_repository = CheckInRepository(connection_manager)
message_repository = ChatMessageRepository(connection_manager)
alert_repository = AlertRepository(
    connection_manager, severity_vocabulary=config.severity_vocabulary
)
rate_limit_repository = RateLimitRepository(connection_manager)

orchestrator = PatternAnalysisOrchestrator(
    signal_loader=SignalLoader(
        check_in_repository, message_repository, max_records=config.max_records
    ),
    alert_repository=alert_repository,
    rate_limit_guard=RateLimitGuard(rate_limit_repository, config.rate_limit),
    config=config,
)


class _Unauthorized(Exception):
    pass


def _current_user_id() -> str:
    try:
        return token_verifier.user_id_from_header(request.headers.get("Authorization"))
    except AuthenticationError as e:
        raise _Unauthorized(str(e)) from e


@app.errorhandler(_Unauthorized)
def _unauthorized(_error) -> Tuple[object, int]:
    return jsonify({"error": "Unauthorized"}), 401


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint for the load balancer."""
    return jsonify({
        "status": "healthy",
        "service": "pattern-service",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - verifies the database answers, when one is configured."""
    if connection_manager is None:
        return jsonify({"status": "ready", "storage": "memory"}), 200

    db_health = connection_manager.health_check()
    if not db_health["healthy"]:
        return jsonify({"status": "not_ready", "reason": "database_unavailable"}), 503
    return jsonify({"status": "ready", "storage": "postgresql"}), 200


@app.route("/analyze-patterns", methods=["POST"])
def analyze_patterns():
    """Run pattern analysis for the authenticated user.

    Request Body (optional):
        {"window": "full" | "lightweight" | "trend"}

    Response:
        {
            "alertsGenerated": 2,
            "patterns": {
                "moodTrend": "analyzed" | "insufficient_data",
                "symptomPatterns": ...,
                "lifestyleIndicators": ...,
                "checkInActivity": ...
            }
        }
    """
    user_id = _current_user_id()

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    try:
        window = AnalysisWindow.from_name(data.get("window"))
    except (ValueError, AttributeError):
        logger.warning("ANALYZE_REQUEST_INVALID", extra={"reason": "unknown_window"})
        return jsonify({"error": "window must be one of: full, lightweight, trend"}), 400

    try:
        summary = orchestrator.analyze(user_id, window=window)

    except RateLimitExceededError as e:
        body = {"error": "Pattern analysis rate limit exceeded. Please try again later."}
        if e.reset_at is not None:
            body["reset_at"] = e.reset_at.isoformat()
        return jsonify(body), 429

    except AlertPersistenceError as e:
        logger.error(
            "ANALYZE_PERSIST_ERROR",
            extra={
                "user_id_hash": hash_identifier(user_id),
                "detected_count": e.detected_count,
                "error": str(e),
            }
        )
        return jsonify({"error": "Pattern analysis failed"}), 500

    except PatternAnalysisError as e:
        logger.error(
            "ANALYZE_ERROR",
            extra={"user_id_hash": hash_identifier(user_id), "error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"error": "Pattern analysis failed"}), 500

    except Exception as e:
        logger.exception(
            "ANALYZE_UNEXPECTED_ERROR",
            extra={"user_id_hash": hash_identifier(user_id), "error_type": type(e).__name__}
        )
        return jsonify({"error": "Pattern analysis failed"}), 500

    return jsonify(summary.to_dict()), 200


@app.route("/alerts", methods=["GET"])
def list_alerts():
    """The caller's alerts, newest first. ``?unread=true`` filters to unread."""
    user_id = _current_user_id()
    unread_only = request.args.get("unread", "false").lower() == "true"

    try:
        alerts = alert_repository.find_by_user(user_id, unread_only=unread_only)
    except Exception as e:
        logger.error("ALERT_LIST_ERROR", extra={"error": str(e), "error_type": type(e).__name__})
        return jsonify({"error": "Failed to load alerts"}), 500

    return jsonify({"alerts": [alert.to_dict() for alert in alerts]}), 200


@app.route("/alerts/<alert_id>/read", methods=["POST"])
def mark_alert_read(alert_id: str):
    user_id = _current_user_id()

    try:
        alert_repository.mark_read(user_id, alert_id)
    except NotFoundError:
        logger.info("ALERT_NOT_FOUND", extra={"alert_id_hash": hash_identifier(alert_id, kind="alert")})
        return jsonify({"error": "Alert not found"}), 404
    except Exception as e:
        logger.error(
            "ALERT_MARK_READ_ERROR",
            extra={
                "alert_id_hash": hash_identifier(alert_id, kind="alert"),
                "error": str(e),
                "error_type": type(e).__name__,
            }
        )
        return jsonify({"error": "Failed to update alert"}), 500

    return jsonify({"id": alert_id, "is_read": True}), 200


@app.route("/alerts/read-all", methods=["POST"])
def mark_all_alerts_read():
    user_id = _current_user_id()

    try:
        updated = alert_repository.mark_all_read(user_id)
    except Exception as e:
        logger.error("ALERT_MARK_ALL_READ_ERROR", extra={"error": str(e), "error_type": type(e).__name__})
        return jsonify({"error": "Failed to update alerts"}), 500

    return jsonify({"updated": updated}), 200


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    port = int(os.getenv("PORT", "8004"))
    app.run(host="0.0.0.0", port=port, debug=False)
