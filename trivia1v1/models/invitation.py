from datetime import datetime

from extensions import db
from trivia1v1.models.enums import InvitationStatus, OPEN_LEVEL


class Invitation(db.Model):
    __tablename__ = "trivia_1v1_invitations"

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.String(64), nullable=False)
    receiver_id = db.Column(db.String(64), nullable=False)
    sender_username = db.Column(db.String(100), default="")
    level = db.Column(db.String(20), default=OPEN_LEVEL)
    status = db.Column(db.String(20), nullable=False, default=InvitationStatus.PENDING.value)
    match_id = db.Column(db.Integer, db.ForeignKey("trivia_1v1_matches.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    accepted_at = db.Column(db.DateTime, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index("ix_invitation_receiver", "receiver_id", "status"),
        db.Index("ix_invitation_sender", "sender_id", "status"),
    )

    def is_expired(self, now=None):
        return self.expires_at <= (now or datetime.utcnow())

    def to_dict(self):
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "sender_username": self.sender_username or "",
            "receiver_id": self.receiver_id,
            "level": self.level,
            "status": self.status,
            "match_id": self.match_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "accepted_at": self.accepted_at.isoformat() if self.accepted_at else None,
            "rejected_at": self.rejected_at.isoformat() if self.rejected_at else None,
        }
