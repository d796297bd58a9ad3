import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request, session

from trivia1v1.errors import AuthError
from trivia1v1.models.enums import OPEN_LEVEL
from trivia1v1.routes.utils import int_arg, json_body
from trivia1v1.services import notification_service, question_service, stats_service
from trivia1v1.services.event_log import recent_log_entries

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)


# -------------------
# LOGIN REQUIRED
# -------------------
def login_required(f):
    @wraps(f)
    def wrapped(*args, **kwargs):
        if not session.get("logged_in"):
            raise AuthError("Admin login required")
        return f(*args, **kwargs)
    return wrapped


@admin_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    password = data.get("password") or request.form.get("password")
    if not password or password != current_app.config.get("ADMIN_PASSWORD"):
        logger.warning("Failed admin login from %s", request.remote_addr)
        raise AuthError("Wrong password")
    session["logged_in"] = True
    return jsonify({"status": "ok"})


@admin_bp.route("/logout", methods=["POST"])
def logout():
    session.pop("logged_in", None)
    return jsonify({"status": "ok"})


# -------------------
# CATEGORIES
# -------------------
@admin_bp.route("/categories", methods=["GET"])
@login_required
def list_categories():
    return jsonify({
        "status": "ok",
        "categories": [c.to_dict() for c in question_service.list_categories()],
    })


@admin_bp.route("/categories", methods=["POST"])
@login_required
def create_category():
    data = json_body()
    category = question_service.create_category(
        data.get("name"),
        icon=data.get("icon", ""),
        color=data.get("color", ""),
        description=data.get("description", ""),
    )
    return jsonify({"status": "ok", "category": category.to_dict()}), 201


# -------------------
# QUESTIONS
# -------------------
@admin_bp.route("/questions", methods=["GET"])
@login_required
def list_questions():
    questions = question_service.list_questions(
        category_id=int_arg(request.args.get("category_id"), "category_id"),
        level=request.args.get("level") or None,
    )
    return jsonify({"status": "ok", "questions": [q.to_dict() for q in questions]})


@admin_bp.route("/questions", methods=["POST"])
@login_required
def create_question():
    data = json_body()
    question = question_service.create_question(
        int_arg(data.get("category_id"), "category_id"),
        data.get("question_text"),
        data.get("options"),
        data.get("correct_answer"),
        level=data.get("level") or OPEN_LEVEL,
        difficulty=data.get("difficulty", "medium"),
        points=data.get("points", 10),
        image_url=data.get("image_url"),
    )
    return jsonify({"status": "ok", "question": question.to_dict()}), 201


@admin_bp.route("/questions/<int:question_id>/toggle", methods=["POST"])
@login_required
def toggle_question(question_id):
    question = question_service.toggle_question(question_id)
    return jsonify({"status": "ok", "is_active": question.is_active})


@admin_bp.route("/questions/<int:question_id>", methods=["DELETE"])
@login_required
def delete_question(question_id):
    question_service.delete_question(question_id)
    return jsonify({"status": "ok"})


# -------------------
# ACHIEVEMENTS
# -------------------
@admin_bp.route("/achievements", methods=["GET"])
@login_required
def list_achievements():
    rows = stats_service.list_achievements()
    return jsonify({"status": "ok", "achievements": [a.to_dict() for a in rows]})


@admin_bp.route("/achievements", methods=["POST"])
@login_required
def create_achievement():
    data = json_body()
    achievement = stats_service.create_achievement(
        data.get("name"),
        data.get("requirement_type"),
        data.get("requirement_value"),
        description=data.get("description", ""),
        icon=data.get("icon", ""),
    )
    return jsonify({"status": "ok", "achievement": achievement.to_dict()}), 201


# -------------------
# LOGS / OUTBOX
# -------------------
@admin_bp.route("/logs", methods=["GET"])
@login_required
def logs():
    limit = int_arg(request.args.get("limit"), "limit") or 200
    entries = recent_log_entries(limit=min(limit, 1000), source=request.args.get("source") or None)
    return jsonify({"status": "ok", "logs": [e.to_dict() for e in entries]})


@admin_bp.route("/notifications", methods=["GET"])
@login_required
def notifications():
    rows = notification_service.list_outbox(status=request.args.get("status") or None)
    return jsonify({"status": "ok", "notifications": [r.to_dict() for r in rows]})


@admin_bp.route("/notifications/dispatch", methods=["POST"])
@login_required
def dispatch_notifications():
    summary = notification_service.dispatch_pending()
    return jsonify({"status": "ok", "summary": summary})
