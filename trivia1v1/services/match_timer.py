import logging
import time

from extensions import db, socketio
from trivia1v1.errors import TriviaError
from trivia1v1.models import Match
from trivia1v1.services.realtime import match_room

logger = logging.getLogger(__name__)


def _question_still_open(match_id, question_id, started_at):
    db.session.expire_all()
    match = db.session.get(Match, match_id)
    return bool(match
                and match.current_question_id == question_id
                and match.question_started_at == started_at)


def run_question_timer(app, match_id, question_id, started_at, time_limit):
    """Countdown for one open question; resolves it as a timeout at zero."""
    from trivia1v1.services import match_service

    with app.app_context():
        deadline = started_at + time_limit
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                break
            socketio.sleep(min(1.0, remaining))
            if not _question_still_open(match_id, question_id, started_at):
                return
            socketio.emit("timer_update", {
                "match_id": match_id,
                "question_id": question_id,
                "remaining": max(0, int(round(deadline - time.time()))),
                "total": time_limit,
            }, to=match_room(match_id))

        # small grace so the server clock is strictly past the deadline
        socketio.sleep(0.05)
        try:
            match_service.expire_question(
                match_id,
                expected_question_id=question_id,
                expected_started_at=started_at,
            )
        except TriviaError as e:
            logger.info("Timer for match %s question %s not applied: %s", match_id, question_id, e.msg)


def start_question_timer(app, match_id, question_id, started_at, time_limit):
    if not app.config.get("QUESTION_TIMER_ENABLED"):
        return None
    return socketio.start_background_task(
        run_question_timer, app, match_id, question_id, started_at, time_limit
    )
