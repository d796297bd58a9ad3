import logging
from datetime import datetime, timedelta

from flask import current_app

from extensions import db
from trivia1v1.errors import NotFoundError, NotYourTurnError, ValidationError
from trivia1v1.models import Invitation
from trivia1v1.models.enums import LEVELS, OPEN_LEVEL, InvitationStatus
from trivia1v1.services import match_service, notification_service, realtime
from trivia1v1.services.event_log import log_event

logger = logging.getLogger(__name__)


def _get_invitation(invitation_id):
    invitation = db.session.get(Invitation, invitation_id) if invitation_id is not None else None
    if not invitation:
        raise NotFoundError("Invitation not found")
    return invitation


def _announce(*user_ids):
    for user_id in user_ids:
        realtime.notify_user(user_id, "invitations_updated", {"user_id": user_id})


def send_invitation(sender_id, receiver_id, level=OPEN_LEVEL, sender_username=""):
    if not sender_id or not receiver_id:
        raise ValidationError("sender and receiver are required")
    if sender_id == receiver_id:
        raise ValidationError("You cannot invite yourself")
    level = level or OPEN_LEVEL
    if level not in LEVELS:
        raise ValidationError(f"Unknown level: {level}")

    now = datetime.utcnow()
    existing = Invitation.query.filter(
        Invitation.sender_id == sender_id,
        Invitation.receiver_id == receiver_id,
        Invitation.status == InvitationStatus.PENDING.value,
        Invitation.expires_at > now,
    ).first()
    if existing:
        raise ValidationError("There is already a pending invitation for this player")

    ttl = float(current_app.config.get("INVITATION_TTL_HOURS", 24))
    invitation = Invitation(
        sender_id=sender_id,
        sender_username=sender_username or "",
        receiver_id=receiver_id,
        level=level,
        status=InvitationStatus.PENDING.value,
        created_at=now,
        expires_at=now + timedelta(hours=ttl),
    )
    db.session.add(invitation)
    db.session.flush()

    name = sender_username or "A player"
    notification_service.queue_push(
        receiver_id,
        "New trivia challenge!",
        f"{name} invited you to a 1v1 trivia match.",
        related_id=invitation.id,
        related_type="trivia_invitation",
    )
    notification_service.queue_email(
        receiver_id,
        "trivia_invitation",
        "You have been challenged in Trivia!",
        f"{name} invited you to a 1v1 trivia match ({level}).",
        related_id=invitation.id,
        related_type="trivia_invitation",
        senderId=sender_id,
        senderUsername=name,
        level=level,
    )
    log_event("invitations", f"{sender_id} invited {receiver_id} ({level})")
    db.session.commit()

    _announce(receiver_id, sender_id)
    return invitation


def accept_invitation(invitation_id, user_id, username=""):
    """Receiver accepts: an active match with both players, sender starts."""
    invitation = _get_invitation(invitation_id)
    if invitation.receiver_id != user_id:
        raise NotYourTurnError("Only the invited player can accept")
    if invitation.status != InvitationStatus.PENDING.value:
        raise ValidationError(f"Invitation is already {invitation.status}")
    if invitation.is_expired():
        invitation.status = InvitationStatus.EXPIRED.value
        db.session.commit()
        _announce(invitation.sender_id, invitation.receiver_id)
        raise ValidationError("Invitation has expired")

    match = match_service.create_match(
        invitation.sender_id,
        invitation.level,
        username=invitation.sender_username or "",
        opponent_id=invitation.receiver_id,
        opponent_username=username,
        commit=False,
    )
    invitation.status = InvitationStatus.ACCEPTED.value
    invitation.accepted_at = datetime.utcnow()
    invitation.match_id = match.id

    notification_service.queue_push(
        invitation.sender_id,
        "Challenge accepted!",
        f"{username or 'Your opponent'} accepted your trivia challenge. It's your turn!",
        url=notification_service.match_url(match.id),
        related_id=match.id,
        related_type="trivia_match",
    )
    log_event("invitations", f"Invitation {invitation.id} accepted, match {match.match_code}")
    db.session.commit()

    _announce(invitation.sender_id, invitation.receiver_id)
    realtime.broadcast_match(match_service.build_snapshot(match))
    return invitation, match


def reject_invitation(invitation_id, user_id):
    invitation = _get_invitation(invitation_id)
    if invitation.receiver_id != user_id:
        raise NotYourTurnError("Only the invited player can reject")
    if invitation.status != InvitationStatus.PENDING.value:
        raise ValidationError(f"Invitation is already {invitation.status}")
    invitation.status = InvitationStatus.REJECTED.value
    invitation.rejected_at = datetime.utcnow()
    log_event("invitations", f"Invitation {invitation.id} rejected by {user_id}")
    db.session.commit()
    _announce(invitation.sender_id, invitation.receiver_id)
    return invitation


def cancel_invitation(invitation_id, user_id):
    invitation = _get_invitation(invitation_id)
    if invitation.sender_id != user_id:
        raise NotYourTurnError("Only the sender can cancel an invitation")
    if invitation.status != InvitationStatus.PENDING.value:
        raise ValidationError(f"Invitation is already {invitation.status}")
    receiver_id = invitation.receiver_id
    db.session.delete(invitation)
    log_event("invitations", f"Invitation {invitation_id} cancelled by {user_id}")
    db.session.commit()
    _announce(user_id, receiver_id)


def expire_stale(user_id, now=None):
    """Mark the user's pending invitations past their deadline as expired."""
    now = now or datetime.utcnow()
    expired = Invitation.query.filter(
        Invitation.receiver_id == user_id,
        Invitation.status == InvitationStatus.PENDING.value,
        Invitation.expires_at <= now,
    ).all()
    for invitation in expired:
        invitation.status = InvitationStatus.EXPIRED.value
    if expired:
        log_event("invitations", f"{len(expired)} invitation(s) to {user_id} expired")
        db.session.commit()
        _announce(*{i.sender_id for i in expired})
    return len(expired)


def list_received(user_id):
    now = datetime.utcnow()
    expire_stale(user_id, now)
    rows = Invitation.query.filter(
        Invitation.receiver_id == user_id,
        Invitation.status == InvitationStatus.PENDING.value,
        Invitation.expires_at > now,
    ).order_by(Invitation.created_at.desc()).all()
    return [r.to_dict() for r in rows]


def list_sent(user_id):
    rows = Invitation.query.filter(
        Invitation.sender_id == user_id,
        Invitation.status.in_([InvitationStatus.PENDING.value, InvitationStatus.ACCEPTED.value]),
    ).order_by(Invitation.created_at.desc()).all()
    return [r.to_dict() for r in rows]
