from flask import Blueprint, jsonify

from trivia1v1.errors import ValidationError
from trivia1v1.models.enums import OPEN_LEVEL
from trivia1v1.routes.utils import current_user_id, json_body
from trivia1v1.services import invitation_service, match_service

invitation_bp = Blueprint("invitations", __name__)


@invitation_bp.route("/received", methods=["GET"])
def received():
    return jsonify({"status": "ok", "invitations": invitation_service.list_received(current_user_id())})


@invitation_bp.route("/sent", methods=["GET"])
def sent():
    return jsonify({"status": "ok", "invitations": invitation_service.list_sent(current_user_id())})


@invitation_bp.route("", methods=["POST"])
def send():
    data = json_body()
    receiver_id = str(data.get("receiver_id") or "").strip()
    if not receiver_id:
        raise ValidationError("receiver_id is required")
    invitation = invitation_service.send_invitation(
        current_user_id(),
        receiver_id,
        data.get("level") or OPEN_LEVEL,
        sender_username=data.get("username", ""),
    )
    return jsonify({"status": "ok", "invitation": invitation.to_dict()}), 201


@invitation_bp.route("/<int:invitation_id>/accept", methods=["POST"])
def accept(invitation_id):
    data = json_body()
    invitation, match = invitation_service.accept_invitation(
        invitation_id, current_user_id(), username=data.get("username", "")
    )
    return jsonify({
        "status": "ok",
        "invitation": invitation.to_dict(),
        **match_service.build_snapshot(match),
    })


@invitation_bp.route("/<int:invitation_id>/reject", methods=["POST"])
def reject(invitation_id):
    invitation = invitation_service.reject_invitation(invitation_id, current_user_id())
    return jsonify({"status": "ok", "invitation": invitation.to_dict()})


@invitation_bp.route("/<int:invitation_id>", methods=["DELETE"])
def cancel(invitation_id):
    invitation_service.cancel_invitation(invitation_id, current_user_id())
    return jsonify({"status": "ok"})
