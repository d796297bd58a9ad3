import json
from datetime import datetime

from extensions import db
from trivia1v1.models.enums import NotificationStatus


class NotificationOutbox(db.Model):
    """Queued push/e-mail notification, delivered by the dispatcher."""
    __tablename__ = "notification_outbox"

    id = db.Column(db.Integer, primary_key=True)
    channel = db.Column(db.String(10), nullable=False)
    user_id = db.Column(db.String(64), nullable=False)
    payload = db.Column(db.Text, default="{}")
    status = db.Column(db.String(10), nullable=False, default=NotificationStatus.PENDING.value)
    attempts = db.Column(db.Integer, default=0)
    next_attempt_at = db.Column(db.Float, default=0.0)
    last_error = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    sent_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index("ix_outbox_status_due", "status", "next_attempt_at"),
    )

    def get_payload(self):
        try:
            return json.loads(self.payload) if self.payload else {}
        except ValueError:
            return {}

    def set_payload(self, payload):
        self.payload = json.dumps(payload or {})

    def to_dict(self):
        return {
            "id": self.id,
            "channel": self.channel,
            "user_id": self.user_id,
            "payload": self.get_payload(),
            "status": self.status,
            "attempts": self.attempts or 0,
            "last_error": self.last_error,
        }
