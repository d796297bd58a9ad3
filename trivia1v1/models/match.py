import json
from datetime import datetime

from extensions import db
from trivia1v1.models.enums import MatchPhase, MatchStatus, OPEN_LEVEL


class Match(db.Model):
    """One 1v1 trivia session. The server is the only writer of this row.

    `version` is SQLAlchemy's optimistic-lock counter: every UPDATE checks it,
    so a writer holding a stale row gets StaleDataError instead of clobbering
    a newer turn.
    """
    __tablename__ = "trivia_1v1_matches"

    id = db.Column(db.Integer, primary_key=True)
    match_code = db.Column(db.String(6), unique=True, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=MatchStatus.WAITING.value)
    phase = db.Column(db.String(20), nullable=False, default=MatchPhase.WHEEL.value)
    level = db.Column(db.String(20), nullable=False, default=OPEN_LEVEL)

    current_player_id = db.Column(db.String(64), nullable=True)
    current_category_id = db.Column(db.Integer, db.ForeignKey("trivia_categories.id"), nullable=True)
    current_question_id = db.Column(db.Integer, db.ForeignKey("trivia_questions.id"), nullable=True)
    current_question_number = db.Column(db.Integer, default=0)
    question_queue = db.Column(db.Text, default="[]")
    asked_question_ids = db.Column(db.Text, default="[]")
    question_started_at = db.Column(db.Float, nullable=True)

    # Pending character-round choice
    character_category_id = db.Column(db.Integer, db.ForeignKey("trivia_categories.id"), nullable=True)
    character_steal = db.Column(db.Boolean, default=False)
    characters_this_turn = db.Column(db.Integer, default=0)

    winner_id = db.Column(db.String(64), nullable=True)
    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
    started_at = db.Column(db.DateTime, nullable=True)
    finished_at = db.Column(db.DateTime, nullable=True)

    players = db.relationship(
        "MatchPlayer",
        back_populates="match",
        order_by="MatchPlayer.player_number",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        db.Index("ix_match_status_level", "status", "level"),
    )

    def get_queue(self):
        return json.loads(self.question_queue) if self.question_queue else []

    def set_queue(self, question_ids):
        self.question_queue = json.dumps(list(question_ids))

    def get_asked(self):
        return json.loads(self.asked_question_ids) if self.asked_question_ids else []

    def set_asked(self, question_ids):
        self.asked_question_ids = json.dumps(list(question_ids))

    def player_for(self, user_id):
        return next((p for p in self.players if p.user_id == user_id), None)

    def opponent_of(self, user_id):
        return next((p for p in self.players if p.user_id != user_id), None)

    def touch(self):
        self.updated_at = datetime.utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "match_code": self.match_code,
            "status": self.status,
            "phase": self.phase,
            "level": self.level,
            "current_player_id": self.current_player_id,
            "current_category_id": self.current_category_id,
            "current_question_id": self.current_question_id,
            "current_question_number": self.current_question_number or 0,
            "question_started_at": self.question_started_at,
            "character_category_id": self.character_category_id,
            "character_steal": bool(self.character_steal),
            "characters_this_turn": self.characters_this_turn or 0,
            "winner_id": self.winner_id,
            "version": self.version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
