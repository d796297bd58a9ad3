from flask import Blueprint, jsonify, request

from trivia1v1.routes.utils import int_arg
from trivia1v1.services import question_service, stats_service

stats_bp = Blueprint("trivia", __name__)


@stats_bp.route("/categories", methods=["GET"])
def categories():
    return jsonify({
        "status": "ok",
        "categories": [c.to_dict() for c in question_service.list_categories()],
    })


@stats_bp.route("/stats/<user_id>", methods=["GET"])
def user_stats(user_id):
    return jsonify({"status": "ok", "stats": stats_service.get_user_stats(user_id)})


@stats_bp.route("/ranking", methods=["GET"])
def ranking():
    limit = int_arg(request.args.get("limit"), "limit") or 100
    return jsonify({"status": "ok", "ranking": stats_service.get_ranking(min(limit, 500))})


@stats_bp.route("/achievements/<user_id>", methods=["GET"])
def achievements(user_id):
    return jsonify({"status": "ok", "achievements": stats_service.list_user_achievements(user_id)})
