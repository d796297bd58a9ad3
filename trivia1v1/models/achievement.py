from datetime import datetime

from extensions import db


class Achievement(db.Model):
    __tablename__ = "trivia_achievements"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), default="")
    icon = db.Column(db.String(20), default="")
    requirement_type = db.Column(db.String(30), nullable=False)  # matches_played, streak, total_points, wins
    requirement_value = db.Column(db.Integer, nullable=False, default=1)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "icon": self.icon or "",
            "requirement_type": self.requirement_type,
            "requirement_value": self.requirement_value,
        }


class UserAchievement(db.Model):
    __tablename__ = "trivia_user_achievements"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    achievement_id = db.Column(db.Integer, db.ForeignKey("trivia_achievements.id", ondelete="CASCADE"), nullable=False)
    earned_at = db.Column(db.DateTime, default=datetime.utcnow)

    achievement = db.relationship("Achievement")

    __table_args__ = (
        db.UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    def to_dict(self):
        data = self.achievement.to_dict() if self.achievement else {}
        data.update({
            "achievement_id": self.achievement_id,
            "earned_at": self.earned_at.isoformat() if self.earned_at else None,
        })
        return data
