from datetime import datetime

from extensions import db


class UserStats(db.Model):
    __tablename__ = "trivia_user_stats"

    user_id = db.Column(db.String(64), primary_key=True)
    total_points = db.Column(db.Integer, default=0)
    total_matches = db.Column(db.Integer, default=0)
    total_wins = db.Column(db.Integer, default=0)
    total_correct = db.Column(db.Integer, default=0)
    total_incorrect = db.Column(db.Integer, default=0)
    best_streak = db.Column(db.Integer, default=0)
    current_streak = db.Column(db.Integer, default=0)  # consecutive match wins
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "total_points": self.total_points or 0,
            "total_matches": self.total_matches or 0,
            "total_wins": self.total_wins or 0,
            "total_correct": self.total_correct or 0,
            "total_incorrect": self.total_incorrect or 0,
            "best_streak": self.best_streak or 0,
            "current_streak": self.current_streak or 0,
        }
