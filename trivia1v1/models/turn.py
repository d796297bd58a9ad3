from datetime import datetime

from extensions import db


class Turn(db.Model):
    """Append-only record of one resolved question."""
    __tablename__ = "trivia_1v1_turns"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("trivia_1v1_matches.id", ondelete="CASCADE"), nullable=False)
    player_id = db.Column(db.String(64), nullable=False)
    category_id = db.Column(db.Integer, nullable=True)
    question_id = db.Column(db.Integer, nullable=True)
    selected_option = db.Column(db.Integer, nullable=True)
    answer_correct = db.Column(db.Boolean, default=False)
    timed_out = db.Column(db.Boolean, default=False)
    time_taken = db.Column(db.Float, default=0.0)
    streak_at_answer = db.Column(db.Integer, default=0)
    character_won = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_turn_match", "match_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "match_id": self.match_id,
            "player_id": self.player_id,
            "category_id": self.category_id,
            "question_id": self.question_id,
            "selected_option": self.selected_option,
            "answer_correct": bool(self.answer_correct),
            "timed_out": bool(self.timed_out),
            "time_taken": float(self.time_taken or 0),
            "streak_at_answer": self.streak_at_answer or 0,
            "character_won": self.character_won,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
