import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

from trivia1v1.errors import TriviaError
from trivia1v1.routes.utils import int_arg, normalize_user_id
from trivia1v1.services import match_service
from trivia1v1.services.realtime import match_room

logger = logging.getLogger(__name__)


def _emit_error(error, event):
    logger.info("Socket %s rejected for %s: %s", event, request.sid, error.msg)
    payload = error.to_dict()
    payload["event"] = event
    emit("match_error", payload, to=request.sid)


def register_match_events(socketio):

    def game_event(name, handler):
        """Run a match operation; broadcasting happens in the service after commit."""
        def wrapped(data):
            try:
                handler(data or {})
            except TriviaError as e:
                _emit_error(e, name)
        wrapped.__name__ = f"handle_{name}"
        return socketio.on(name)(wrapped)

    # ---------------------------
    # ROOMS
    # ---------------------------
    @socketio.on("match_subscribe")
    def handle_subscribe(data):
        data = data or {}
        try:
            snapshot = match_service.get_snapshot(data.get("match_id"))
        except TriviaError as e:
            _emit_error(e, "match_subscribe")
            return
        join_room(match_room(snapshot["match"]["id"]))
        # late joiners get the current state, open question included
        emit("match_updated", {
            "match": snapshot["match"],
            "question": snapshot["question"],
            "time_left": snapshot["time_left"],
        }, to=request.sid)
        emit("players_updated", {
            "match_id": snapshot["match"]["id"],
            "players": snapshot["players"],
        }, to=request.sid)

    @socketio.on("match_unsubscribe")
    def handle_unsubscribe(data):
        match_id = (data or {}).get("match_id")
        if match_id is not None:
            leave_room(match_room(match_id))

    # ---------------------------
    # TURN ACTIONS
    # ---------------------------
    game_event("match_spin", lambda d: match_service.spin(
        d.get("match_id"), normalize_user_id(d.get("user_id")),
        category_id=int_arg(d.get("category_id"), "category_id"),
        expected_version=int_arg(d.get("expected_version"), "expected_version"),
    ))

    game_event("match_answer", lambda d: match_service.answer(
        d.get("match_id"), normalize_user_id(d.get("user_id")), d.get("option_index"),
        expected_version=int_arg(d.get("expected_version"), "expected_version"),
    ))

    game_event("match_timeout", lambda d: match_service.expire_question(
        d.get("match_id"), user_id=normalize_user_id(d.get("user_id")),
        expected_version=int_arg(d.get("expected_version"), "expected_version"),
    ))

    game_event("match_choose_character", lambda d: match_service.choose_character(
        d.get("match_id"), normalize_user_id(d.get("user_id")),
        int_arg(d.get("category_id"), "category_id"),
        expected_version=int_arg(d.get("expected_version"), "expected_version"),
    ))

    game_event("match_skip_character_round", lambda d: match_service.skip_character_round(
        d.get("match_id"), normalize_user_id(d.get("user_id")),
        expected_version=int_arg(d.get("expected_version"), "expected_version"),
    ))
