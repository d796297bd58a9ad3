from datetime import datetime, timedelta

import pytest

from extensions import db
from trivia1v1.errors import NotFoundError, NotYourTurnError, ValidationError
from trivia1v1.models import Invitation, NotificationOutbox
from trivia1v1.models.enums import InvitationStatus, MatchStatus
from trivia1v1.services import invitation_service


def test_send_invitation_queues_notifications(app):
    invitation = invitation_service.send_invitation("alice", "bob", "primaria", sender_username="Alice")

    assert invitation.status == InvitationStatus.PENDING.value
    assert invitation.expires_at - invitation.created_at == timedelta(hours=24)
    channels = sorted(r.channel for r in NotificationOutbox.query.filter_by(user_id="bob").all())
    assert channels == ["email", "push"]


def test_cannot_invite_yourself(app):
    with pytest.raises(ValidationError):
        invitation_service.send_invitation("alice", "alice")


def test_duplicate_pending_invitation_is_rejected(app):
    invitation_service.send_invitation("alice", "bob")
    with pytest.raises(ValidationError):
        invitation_service.send_invitation("alice", "bob")
    # the other direction is a different invitation
    invitation_service.send_invitation("bob", "alice")


def test_accept_creates_active_match_sender_starts(app, categories):
    invitation = invitation_service.send_invitation("alice", "bob", "secundaria")
    accepted, match = invitation_service.accept_invitation(invitation.id, "bob", username="Bob")

    assert accepted.status == InvitationStatus.ACCEPTED.value
    assert accepted.match_id == match.id
    assert match.status == MatchStatus.ACTIVE.value
    assert match.level == "secundaria"
    assert match.current_player_id == "alice"
    assert sorted(p.user_id for p in match.players) == ["alice", "bob"]
    assert NotificationOutbox.query.filter_by(user_id="alice").count() == 1


def test_accepted_match_keeps_both_usernames(app, categories):
    invitation = invitation_service.send_invitation("alice", "bob", sender_username="Alice")
    assert invitation.to_dict()["sender_username"] == "Alice"

    _, match = invitation_service.accept_invitation(invitation.id, "bob", username="Bob")
    names = {p.player_number: p.username for p in match.players}
    assert names == {1: "Alice", 2: "Bob"}


def test_only_receiver_can_accept(app):
    invitation = invitation_service.send_invitation("alice", "bob")
    with pytest.raises(NotYourTurnError):
        invitation_service.accept_invitation(invitation.id, "alice")


def test_expired_invitation_cannot_be_accepted(app):
    invitation = invitation_service.send_invitation("alice", "bob")
    invitation.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    with pytest.raises(ValidationError):
        invitation_service.accept_invitation(invitation.id, "bob")
    assert db.session.get(Invitation, invitation.id).status == InvitationStatus.EXPIRED.value
    assert invitation_service.list_received("bob") == []


def test_listing_marks_expired_invitations(app):
    stale = invitation_service.send_invitation("alice", "bob")
    fresh = invitation_service.send_invitation("carol", "bob")
    stale.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    received = invitation_service.list_received("bob")

    assert [i["id"] for i in received] == [fresh.id]
    assert db.session.get(Invitation, stale.id).status == InvitationStatus.EXPIRED.value
    assert db.session.get(Invitation, fresh.id).status == InvitationStatus.PENDING.value
    # a new invitation is allowed once the old one expired
    invitation_service.send_invitation("alice", "bob")


def test_reject_and_lists(app):
    first = invitation_service.send_invitation("alice", "bob")
    invitation_service.send_invitation("carol", "bob")

    assert len(invitation_service.list_received("bob")) == 2
    invitation_service.reject_invitation(first.id, "bob")

    received = invitation_service.list_received("bob")
    assert [i["sender_id"] for i in received] == ["carol"]
    assert invitation_service.list_sent("alice") == []

    with pytest.raises(ValidationError):
        invitation_service.accept_invitation(first.id, "bob")


def test_cancel_only_by_sender(app):
    invitation = invitation_service.send_invitation("alice", "bob")
    with pytest.raises(NotYourTurnError):
        invitation_service.cancel_invitation(invitation.id, "bob")

    invitation_service.cancel_invitation(invitation.id, "alice")
    with pytest.raises(NotFoundError):
        invitation_service.reject_invitation(invitation.id, "bob")


def test_invitation_changes_reach_user_rooms(app, socket_client_factory):
    bob = socket_client_factory()
    bob.emit("user_subscribe", {"user_id": "bob"})
    bob.get_received()

    invitation_service.send_invitation("alice", "bob")
    events = [e["name"] for e in bob.get_received()]
    assert "invitations_updated" in events
