from flask import Blueprint, jsonify

from trivia1v1.models.enums import OPEN_LEVEL
from trivia1v1.routes.utils import current_user_id, int_arg, json_body
from trivia1v1.services import match_service

match_bp = Blueprint("matches", __name__)


def _turn_response(result):
    outcome, snapshot = result
    return jsonify({"status": "ok", "result": outcome.to_dict(), **snapshot})


# ---------------------------
# MATCHMAKING
# ---------------------------
@match_bp.route("", methods=["POST"])
def create_match():
    data = json_body()
    match = match_service.create_match(
        current_user_id(),
        data.get("level") or OPEN_LEVEL,
        username=data.get("username", ""),
    )
    return jsonify({"status": "ok", **match_service.build_snapshot(match)}), 201


@match_bp.route("/join", methods=["POST"])
def join_match():
    data = json_body()
    match = match_service.join_match(
        data.get("match_code"), current_user_id(), username=data.get("username", "")
    )
    return jsonify({"status": "ok", **match_service.build_snapshot(match)})


@match_bp.route("/join-random", methods=["POST"])
def join_random():
    data = json_body()
    match = match_service.join_random_match(
        current_user_id(),
        data.get("level") or OPEN_LEVEL,
        username=data.get("username", ""),
    )
    return jsonify({"status": "ok", **match_service.build_snapshot(match)})


@match_bp.route("/active", methods=["GET"])
def active_matches():
    return jsonify({"status": "ok", "matches": match_service.list_active_matches(current_user_id())})


@match_bp.route("/<int:match_id>", methods=["GET"])
def get_match(match_id):
    return jsonify({"status": "ok", **match_service.get_snapshot(match_id)})


@match_bp.route("/<int:match_id>/turns", methods=["GET"])
def get_turns(match_id):
    return jsonify({"status": "ok", "turns": match_service.list_turns(match_id)})


# ---------------------------
# TURN ACTIONS
# ---------------------------
@match_bp.route("/<int:match_id>/spin", methods=["POST"])
def spin(match_id):
    data = json_body()
    return _turn_response(match_service.spin(
        match_id,
        current_user_id(),
        category_id=int_arg(data.get("category_id"), "category_id"),
        expected_version=int_arg(data.get("expected_version"), "expected_version"),
    ))


@match_bp.route("/<int:match_id>/answer", methods=["POST"])
def answer(match_id):
    data = json_body()
    return _turn_response(match_service.answer(
        match_id,
        current_user_id(),
        data.get("option_index"),
        expected_version=int_arg(data.get("expected_version"), "expected_version"),
    ))


@match_bp.route("/<int:match_id>/timeout", methods=["POST"])
def timeout(match_id):
    data = json_body()
    return _turn_response(match_service.expire_question(
        match_id,
        user_id=current_user_id(),
        expected_version=int_arg(data.get("expected_version"), "expected_version"),
    ))


@match_bp.route("/<int:match_id>/character", methods=["POST"])
def choose_character(match_id):
    data = json_body()
    return _turn_response(match_service.choose_character(
        match_id,
        current_user_id(),
        int_arg(data.get("category_id"), "category_id"),
        expected_version=int_arg(data.get("expected_version"), "expected_version"),
    ))


@match_bp.route("/<int:match_id>/skip-character", methods=["POST"])
def skip_character(match_id):
    data = json_body()
    return _turn_response(match_service.skip_character_round(
        match_id,
        current_user_id(),
        expected_version=int_arg(data.get("expected_version"), "expected_version"),
    ))
