"""Authoritative match operations.

Every turn operation runs under a per-match lock, loads the match, applies
the TurnEngine, appends the turn record and commits once. The Match row is
version-checked by SQLAlchemy, so a concurrent writer in another process
fails with ConflictError instead of overwriting a newer turn.
"""
import logging
import random
import threading
import time
from contextlib import contextmanager
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from extensions import db
from trivia1v1.errors import ConflictError, NotFoundError, ValidationError
from trivia1v1.models import Match, MatchPlayer, Question, Turn
from trivia1v1.models.enums import LEVELS, OPEN_LEVEL, MatchPhase, MatchStatus
from trivia1v1.services import notification_service, question_service, realtime, stats_service
from trivia1v1.services.event_log import log_event, trim_log_entries
from trivia1v1.services.match_timer import start_question_timer
from trivia1v1.services.turn_engine import TurnEngine, TurnRules

logger = logging.getLogger(__name__)

MATCH_CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MATCH_CODE_LENGTH = 6

_locks = {}
_locks_guard = threading.Lock()


def _now():
    return time.time()


@contextmanager
def match_lock(match_id):
    with _locks_guard:
        lock = _locks.setdefault(match_id, threading.RLock())
    with lock:
        yield


def _release_lock(match_id):
    with _locks_guard:
        _locks.pop(match_id, None)


def get_rules():
    return TurnRules.from_config(current_app.config)


def generate_match_code():
    while True:
        code = "".join(random.choice(MATCH_CODE_CHARS) for _ in range(MATCH_CODE_LENGTH))
        if not Match.query.filter_by(match_code=code).first():
            return code


def _coerce_id(match_id):
    try:
        return int(match_id)
    except (TypeError, ValueError):
        raise NotFoundError("Match not found")


def get_match(match_id):
    match = db.session.get(Match, _coerce_id(match_id))
    if not match:
        raise NotFoundError("Match not found")
    return match


def _validate_level(level):
    level = level or OPEN_LEVEL
    if level not in LEVELS:
        raise ValidationError(f"Unknown level: {level}")
    return level


def _commit():
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        raise ConflictError("Match was changed by another request, reload and retry")


# ---------------------------
# SNAPSHOTS
# ---------------------------
def build_snapshot(match, now=None):
    now = _now() if now is None else now
    engine = TurnEngine(match, get_rules())
    question_payload = None
    time_left = None
    if engine.has_open_question():
        question = question_service.get_question(match.current_question_id)
        question_payload = question_service.get_question_unlock_payload(
            question, match.question_started_at, engine.rules.time_limit
        )
        time_left = engine.time_left(now)
    return {
        "match": match.to_dict(),
        "players": [p.to_dict() for p in match.players],
        "question": question_payload,
        "time_left": time_left,
    }


def get_snapshot(match_id):
    return build_snapshot(get_match(match_id))


def list_turns(match_id):
    get_match(match_id)
    turns = Turn.query.filter_by(match_id=match_id).order_by(Turn.id).all()
    return [t.to_dict() for t in turns]


def list_active_matches(user_id):
    match_ids = [row[0] for row in db.session.query(MatchPlayer.match_id)
                 .filter(MatchPlayer.user_id == user_id).all()]
    if not match_ids:
        return []
    matches = Match.query.filter(
        Match.id.in_(match_ids),
        Match.status.in_([MatchStatus.WAITING.value, MatchStatus.ACTIVE.value]),
    ).order_by(Match.created_at.desc(), Match.id.desc()).all()
    return [{
        "match": m.to_dict(),
        "player_count": len(m.players),
        "players": [p.to_dict() for p in m.players],
        "is_my_turn": m.current_player_id == user_id,
    } for m in matches]


# ---------------------------
# MATCHMAKING
# ---------------------------
def _add_player(match, user_id, username, number):
    player = MatchPlayer(
        match_id=match.id,
        user_id=user_id,
        username=username or "",
        player_number=number,
        current_streak=0,
        best_streak=0,
        correct_answers=0,
        incorrect_answers=0,
    )
    player.set_characters([])
    db.session.add(player)
    return player


def _activate(match):
    first = next((p for p in match.players if p.player_number == 1), None)
    match.status = MatchStatus.ACTIVE.value
    match.phase = MatchPhase.WHEEL.value
    match.started_at = datetime.utcnow()
    match.current_player_id = first.user_id if first else None
    match.touch()


def create_match(user_id, level=OPEN_LEVEL, username="", opponent_id=None,
                 opponent_username="", commit=True):
    """New match with the caller as player 1; waiting unless an opponent is given."""
    if not user_id:
        raise ValidationError("user_id is required")
    level = _validate_level(level)
    match = Match(
        match_code=generate_match_code(),
        status=MatchStatus.WAITING.value,
        phase=MatchPhase.WHEEL.value,
        level=level,
        current_question_number=0,
        characters_this_turn=0,
    )
    match.set_queue([])
    match.set_asked([])
    db.session.add(match)
    db.session.flush()

    _add_player(match, user_id, username, 1)
    if opponent_id:
        _add_player(match, opponent_id, opponent_username, 2)
    db.session.flush()
    db.session.refresh(match)
    if opponent_id:
        _activate(match)

    log_event("match", f"Match {match.match_code} created by {user_id} ({level})")
    if commit:
        db.session.commit()
    return match


def _join(match, user_id, username):
    if any(p.user_id == user_id for p in match.players):
        return match
    if len(match.players) >= 2:
        raise ValidationError("Match is full")
    _add_player(match, user_id, username, 2)
    db.session.flush()
    db.session.refresh(match)
    _activate(match)
    log_event("match", f"{user_id} joined match {match.match_code}; {match.current_player_id} starts")
    _commit()
    realtime.broadcast_match(build_snapshot(match))
    return match


def join_match(match_code, user_id, username=""):
    if not user_id:
        raise ValidationError("user_id is required")
    code = (match_code or "").strip().upper()
    match = Match.query.filter(
        Match.match_code == code,
        Match.status.in_([MatchStatus.WAITING.value, MatchStatus.ACTIVE.value]),
    ).first()
    if not match:
        raise NotFoundError("Match not found")
    with match_lock(match.id):
        return _join(match, user_id, username)


def join_random_match(user_id, level=OPEN_LEVEL, username=""):
    """Earliest waiting match of that level with one other player, else a new one."""
    if not user_id:
        raise ValidationError("user_id is required")
    level = _validate_level(level)
    waiting = Match.query.filter(
        Match.status == MatchStatus.WAITING.value,
        Match.level == level,
    ).order_by(Match.created_at.asc(), Match.id.asc()).limit(10).all()

    own_waiting = None
    for match in waiting:
        players = match.players
        if len(players) != 1:
            continue
        if players[0].user_id == user_id:
            own_waiting = own_waiting or match
            continue
        try:
            with match_lock(match.id):
                return _join(match, user_id, username)
        except (IntegrityError, ConflictError, ValidationError) as e:
            db.session.rollback()
            logger.info("Could not join match %s, trying next: %s", match.id, e)
            continue

    if own_waiting:
        return own_waiting
    return create_match(user_id, level, username)


# ---------------------------
# TURN OPERATIONS
# ---------------------------
def _apply(match_id, expected_version, action):
    match_id = _coerce_id(match_id)
    if expected_version is not None:
        try:
            expected_version = int(expected_version)
        except (TypeError, ValueError):
            raise ValidationError("expected_version must be an integer")

    with match_lock(match_id):
        try:
            match = get_match(match_id)
            if expected_version is not None and expected_version != match.version:
                raise ConflictError("Match changed since you last saw it, reload and retry")
            engine = TurnEngine(match, get_rules())
            outcome = action(engine, match)
            if outcome is None:
                db.session.rollback()
                return None, None
            _persist(match, outcome)
            _commit()
        except Exception:
            db.session.rollback()
            raise
        snapshot = build_snapshot(match)

    if outcome.finished:
        # finished matches take no more turn operations
        _release_lock(match_id)
    _after_commit(match, outcome, snapshot, engine.rules)
    return outcome, snapshot


def _pass_reason(outcome):
    if outcome.action == "skip_character_round":
        return "skipped"
    if outcome.timed_out:
        return "timeout"
    if outcome.character_won is not None:
        return "characters"
    return "missed"


def _persist(match, outcome):
    if outcome.turn_record:
        db.session.add(Turn(**outcome.turn_record))

    if outcome.character_won is not None:
        msg = f"{outcome.player_id} won character {outcome.character_won} in match {match.match_code}"
        if outcome.stolen_from:
            msg += f" (stolen from {outcome.stolen_from})"
        log_event("match", msg)

    if outcome.turn_passed and outcome.next_player_id != outcome.player_id:
        previous = match.player_for(outcome.player_id)
        nxt = match.player_for(outcome.next_player_id)
        reason = _pass_reason(outcome)
        log_event("match", f"Turn passed to {outcome.next_player_id} in match {match.match_code} ({reason})")
        if previous and nxt:
            notification_service.queue_turn_notification(match, previous, nxt, reason)

    if outcome.finished:
        earned = stats_service.finalize_match(match)
        outcome.extra["achievements"] = {
            user_id: [a.to_dict() for a in items] for user_id, items in earned.items() if items
        }
        log_event("match", f"Match {match.match_code} finished, winner {outcome.winner_id}")
        trim_log_entries()


def _after_commit(match, outcome, snapshot, rules):
    if outcome.turn_record:
        result = outcome.to_dict()
        question = db.session.get(Question, outcome.question_id) \
            if outcome.question_id is not None else None
        if question:
            result["answer_key"] = question_service.get_question_answer_key(question)
        result["match_id"] = match.id
        outcome.extra["answer_key"] = result.get("answer_key")
        realtime.broadcast_question_result(match.id, result)

    realtime.broadcast_match(snapshot)

    if outcome.question_opened:
        start_question_timer(
            current_app._get_current_object(),
            match.id,
            match.current_question_id,
            match.question_started_at,
            rules.time_limit,
        )


def spin(match_id, user_id, category_id=None, expected_version=None):
    """Pick (or randomly draw) a category and open its first question."""
    def action(engine, match):
        engine.require_turn(user_id)
        asked = match.get_asked()
        if category_id is None:
            chosen = question_service.random_category_id(match.level, asked)
        else:
            chosen = question_service.get_category(category_id).id
        questions = question_service.fetch_questions(
            chosen,
            match.level,
            limit=current_app.config.get("QUESTIONS_PER_SPIN", 10),
            exclude_ids=asked,
        )
        return engine.spin(user_id, chosen, questions, _now())

    return _apply(match_id, expected_version, action)


def answer(match_id, user_id, option_index, expected_version=None):
    try:
        option_index = int(option_index)
    except (TypeError, ValueError):
        raise ValidationError("option_index must be an integer")

    def action(engine, match):
        engine.require_turn(user_id)
        if not engine.has_open_question():
            raise ValidationError("No question is open")
        question = question_service.get_question(match.current_question_id)
        return engine.answer(user_id, option_index, question, _now())

    return _apply(match_id, expected_version, action)


def expire_question(match_id, user_id=None, expected_question_id=None,
                    expected_started_at=None, expected_version=None):
    """Resolve the open question as a timeout once its deadline has passed.

    With expected_question_id/started_at (the server timer) it is a no-op
    when that question was already resolved.
    """
    def action(engine, match):
        if expected_question_id is not None and (
                match.current_question_id != expected_question_id
                or match.question_started_at != expected_started_at):
            return None
        return engine.expire(_now(), user_id)

    return _apply(match_id, expected_version, action)


def choose_character(match_id, user_id, category_id, expected_version=None):
    def action(engine, match):
        engine.require_turn(user_id)
        category = question_service.get_category(category_id)
        question = question_service.pick_random_question(
            category.id, match.level, exclude_ids=match.get_asked()
        )
        return engine.choose_character(user_id, category.id, question, _now())

    return _apply(match_id, expected_version, action)


def skip_character_round(match_id, user_id, expected_version=None):
    def action(engine, match):
        return engine.skip_character_round(user_id)

    return _apply(match_id, expected_version, action)
