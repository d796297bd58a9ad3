"""Outbox for push and e-mail notifications.

Rows are added in the same transaction as the state change that caused them
and delivered later by `dispatch_pending`, so a slow or failing endpoint never
blocks a turn.
"""
import logging
import time
from datetime import datetime

import requests
from flask import current_app

from extensions import db, socketio
from trivia1v1.models import NotificationOutbox
from trivia1v1.models.enums import NotificationChannel, NotificationStatus
from trivia1v1.services.event_log import log_event

logger = logging.getLogger(__name__)


def _enqueue(channel, user_id, payload):
    row = NotificationOutbox(
        channel=channel.value,
        user_id=user_id,
        status=NotificationStatus.PENDING.value,
        attempts=0,
        next_attempt_at=0.0,
    )
    row.set_payload(payload)
    db.session.add(row)
    return row


def queue_push(user_id, title, message, url=None, related_id=None, related_type=None):
    return _enqueue(NotificationChannel.PUSH, user_id, {
        "userId": user_id,
        "title": title,
        "message": message,
        "url": url,
        "relatedId": related_id,
        "relatedType": related_type,
    })


def queue_email(user_id, notification_type, title, message, related_id=None, related_type=None, **extra):
    payload = {
        "userId": user_id,
        "notificationType": notification_type,
        "title": title,
        "message": message,
        "relatedId": related_id,
        "relatedType": related_type,
    }
    payload.update(extra)
    return _enqueue(NotificationChannel.EMAIL, user_id, payload)


def match_url(match_id):
    base = current_app.config.get("APP_BASE_URL", "").rstrip("/")
    return f"{base}/trivia-game?match={match_id}"


TURN_MESSAGES = {
    "missed": ("{name} missed a question. It's your turn in the trivia match.",
               "{name} missed a question. Jump back in and keep collecting characters."),
    "timeout": ("{name} ran out of time. It's your turn in the trivia match.",
                "{name} ran out of time on a question. Jump back in and keep collecting characters."),
    "characters": ("{name} won 3 characters this turn. Now it's your turn!",
                   "{name} collected 3 characters in a row. Your turn to catch up."),
    "skipped": ("{name} skipped the character round. It's your turn!",
                "{name} skipped the character round. Jump back in and keep collecting characters."),
}


def queue_turn_notification(match, previous_player, next_player, reason="missed"):
    """Tell `next_player` it is their turn; `reason` is why `previous_player` handed it over."""
    name = previous_player.username or "Your opponent"
    push_text, email_text = TURN_MESSAGES.get(reason, TURN_MESSAGES["missed"])
    queue_push(
        next_player.user_id,
        "It's your turn!",
        push_text.format(name=name),
        url=match_url(match.id),
        related_id=match.id,
        related_type="trivia_match",
    )
    queue_email(
        next_player.user_id,
        "trivia_turn",
        "It's your turn in Trivia!",
        email_text.format(name=name),
        related_id=match.id,
        related_type="trivia_match",
        opponentId=next_player.user_id,
        failedPlayerUsername=name,
        matchId=match.id,
        reason=reason,
    )


def _endpoint_for(channel):
    if channel == NotificationChannel.PUSH.value:
        return current_app.config.get("PUSH_NOTIFICATION_URL", "")
    if channel == NotificationChannel.EMAIL.value:
        return current_app.config.get("EMAIL_NOTIFICATION_URL", "")
    return ""


def _headers():
    headers = {"Content-Type": "application/json"}
    api_key = current_app.config.get("NOTIFICATION_API_KEY")
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _retry_delay(attempts):
    base = float(current_app.config.get("NOTIFICATION_RETRY_BASE", 30))
    return base * (2 ** max(0, attempts - 1))


def _deliver(row, now, summary):
    url = _endpoint_for(row.channel)
    if not url:
        row.status = NotificationStatus.SKIPPED.value
        summary["skipped"] += 1
        return

    try:
        response = requests.post(
            url,
            json=row.get_payload(),
            headers=_headers(),
            timeout=current_app.config.get("NOTIFICATION_TIMEOUT", 5),
        )
        response.raise_for_status()
    except requests.RequestException as e:
        row.attempts = (row.attempts or 0) + 1
        row.last_error = str(e)[:500]
        max_attempts = int(current_app.config.get("NOTIFICATION_MAX_ATTEMPTS", 5))
        if row.attempts >= max_attempts:
            row.status = NotificationStatus.FAILED.value
            summary["failed"] += 1
            log_event("notifications", f"Gave up on {row.channel} notification {row.id} "
                                       f"for {row.user_id} after {row.attempts} attempts: {row.last_error}")
        else:
            row.next_attempt_at = now + _retry_delay(row.attempts)
            summary["retry"] += 1
            logger.warning("Notification %s (%s) failed, attempt %s: %s",
                           row.id, row.channel, row.attempts, row.last_error)
        return

    row.status = NotificationStatus.SENT.value
    row.sent_at = datetime.utcnow()
    row.attempts = (row.attempts or 0) + 1
    summary["sent"] += 1


def dispatch_pending(now=None, limit=50):
    now = time.time() if now is None else now
    rows = NotificationOutbox.query.filter(
        NotificationOutbox.status == NotificationStatus.PENDING.value,
        NotificationOutbox.next_attempt_at <= now,
    ).order_by(NotificationOutbox.id).limit(limit).all()

    summary = {"sent": 0, "retry": 0, "failed": 0, "skipped": 0}
    for row in rows:
        _deliver(row, now, summary)
    db.session.commit()
    return summary


def list_outbox(status=None, limit=100):
    query = NotificationOutbox.query
    if status:
        query = query.filter(NotificationOutbox.status == status)
    return query.order_by(NotificationOutbox.id.desc()).limit(limit).all()


def run_notification_worker(app):
    interval = float(app.config.get("NOTIFICATION_WORKER_INTERVAL", 10))
    while True:
        with app.app_context():
            try:
                summary = dispatch_pending()
                if any(summary.values()):
                    logger.info("Notification dispatch: %s", summary)
            except Exception:
                db.session.rollback()
                logger.exception("Notification worker iteration failed")
        socketio.sleep(interval)


def start_notification_worker(app):
    if not app.config.get("NOTIFICATION_WORKER_ENABLED"):
        return None
    return socketio.start_background_task(run_notification_worker, app)
