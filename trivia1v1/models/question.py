import json

from extensions import db
from trivia1v1.models.enums import OPEN_LEVEL


class Question(db.Model):
    """Multiple choice trivia question. `options` holds a JSON list of strings."""
    __tablename__ = "trivia_questions"

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("trivia_categories.id", ondelete="CASCADE"), nullable=False)
    question_text = db.Column(db.String(1000), nullable=False)
    options = db.Column(db.Text, default="[]")
    correct_answer = db.Column(db.Integer, default=0)
    level = db.Column(db.String(20), default=OPEN_LEVEL)
    difficulty = db.Column(db.String(20), default="medium")
    points = db.Column(db.Integer, default=10)
    image_url = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    category = db.relationship("Category", back_populates="questions")

    __table_args__ = (
        db.Index("ix_question_category", "category_id"),
        db.Index("ix_question_level", "level"),
    )

    def get_options(self):
        try:
            return json.loads(self.options) if self.options else []
        except ValueError:
            return []

    def set_options(self, options):
        self.options = json.dumps(options) if options else "[]"

    def is_correct(self, option_index):
        return option_index is not None and option_index == self.correct_answer

    def to_public_dict(self):
        """Payload shown to players while the question is open (no answer key)."""
        return {
            "id": self.id,
            "category_id": self.category_id,
            "question_text": self.question_text,
            "options": self.get_options(),
            "image_url": self.image_url,
            "level": self.level,
        }

    def to_dict(self):
        data = self.to_public_dict()
        data.update({
            "correct_answer": self.correct_answer,
            "difficulty": self.difficulty,
            "points": self.points,
            "is_active": bool(self.is_active),
        })
        return data
