from extensions import db


class Category(db.Model):
    __tablename__ = "trivia_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    icon = db.Column(db.String(20), default="")
    color = db.Column(db.String(20), default="")
    description = db.Column(db.String(500), default="")

    questions = db.relationship("Question", back_populates="category", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon or "",
            "color": self.color or "",
            "description": self.description or "",
        }
