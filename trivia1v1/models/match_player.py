import json

from extensions import db


class MatchPlayer(db.Model):
    __tablename__ = "trivia_1v1_players"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("trivia_1v1_matches.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.String(64), nullable=False)
    username = db.Column(db.String(100), default="")
    player_number = db.Column(db.Integer, nullable=False)
    characters_collected = db.Column(db.Text, default="[]")

    current_streak = db.Column(db.Integer, default=0)
    best_streak = db.Column(db.Integer, default=0)
    correct_answers = db.Column(db.Integer, default=0)
    incorrect_answers = db.Column(db.Integer, default=0)

    match = db.relationship("Match", back_populates="players")

    __table_args__ = (
        db.UniqueConstraint("match_id", "user_id", name="uq_player_match_user"),
        db.UniqueConstraint("match_id", "player_number", name="uq_player_match_number"),
        db.Index("ix_player_user", "user_id"),
    )

    def get_characters(self):
        try:
            return json.loads(self.characters_collected) if self.characters_collected else []
        except ValueError:
            return []

    def set_characters(self, category_ids):
        # keep insertion order, drop duplicates
        unique = list(dict.fromkeys(category_ids))
        self.characters_collected = json.dumps(unique)

    def has_character(self, category_id):
        return category_id in self.get_characters()

    def to_dict(self):
        return {
            "id": self.id,
            "match_id": self.match_id,
            "user_id": self.user_id,
            "username": self.username or "",
            "player_number": self.player_number,
            "characters_collected": self.get_characters(),
            "current_streak": self.current_streak or 0,
            "best_streak": self.best_streak or 0,
            "correct_answers": self.correct_answers or 0,
            "incorrect_answers": self.incorrect_answers or 0,
        }
