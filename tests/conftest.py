import pytest

from app import create_app
from config import TestConfig
from extensions import db, socketio
from trivia1v1.models import Achievement, Category, Match, Question
from trivia1v1.services import match_service, question_service

CATEGORY_NAMES = ["Ciencias", "Historia", "Geografía", "Arte", "Deportes", "Entretenimiento"]
QUESTIONS_PER_CATEGORY = 12


@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    question_service.set_shuffle_seed(1234)
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socket_client_factory(app, client):
    created = []

    def make():
        sc = socketio.test_client(app, flask_test_client=client)
        created.append(sc)
        return sc

    yield make
    for sc in created:
        if sc.is_connected():
            sc.disconnect()


@pytest.fixture
def categories(app):
    """Six categories with twelve 4-option questions each; correct index rotates."""
    ids = []
    for name in CATEGORY_NAMES:
        category = Category(name=name, icon="", color="", description="")
        db.session.add(category)
        db.session.flush()
        for i in range(QUESTIONS_PER_CATEGORY):
            question = Question(
                category_id=category.id,
                question_text=f"{name} #{i}",
                correct_answer=i % 4,
                level="libre",
                is_active=True,
            )
            question.set_options([f"{name}-{i}-{k}" for k in range(4)])
            db.session.add(question)
        ids.append(category.id)
    db.session.commit()
    return ids


@pytest.fixture
def achievements(app):
    rows = [
        Achievement(name="First match", requirement_type="matches_played", requirement_value=1),
        Achievement(name="First win", requirement_type="wins", requirement_value=1),
        Achievement(name="Hot streak", requirement_type="streak", requirement_value=3),
        Achievement(name="Rich", requirement_type="total_points", requirement_value=1000),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


class MatchDriver:
    """Plays a match through match_service, always as the player whose turn it is."""

    def __init__(self, match_id, category_ids):
        self.match_id = match_id
        self.category_ids = category_ids
        self._next_category = 0

    def match(self):
        db.session.expire_all()
        return db.session.get(Match, self.match_id)

    def current(self):
        return self.match().current_player_id

    def player(self, user_id):
        return self.match().player_for(user_id)

    def question(self):
        return db.session.get(Question, self.match().current_question_id)

    def correct_index(self):
        return self.question().correct_answer

    def wrong_index(self):
        question = self.question()
        return (question.correct_answer + 1) % len(question.get_options())

    def filler_category(self, avoid=None):
        for _ in range(len(self.category_ids)):
            category_id = self.category_ids[self._next_category % len(self.category_ids)]
            self._next_category += 1
            if category_id != avoid:
                return category_id
        return self.category_ids[0]

    def spin(self, category_id=None):
        category_id = category_id or self.filler_category()
        return match_service.spin(self.match_id, self.current(), category_id)

    def answer_right(self):
        return match_service.answer(self.match_id, self.current(), self.correct_index())

    def answer_wrong(self):
        return match_service.answer(self.match_id, self.current(), self.wrong_index())

    def reach_character_round(self, category_id=None):
        for _ in range(3):
            self.spin(category_id)
            self.answer_right()

    def win_character(self, category_id):
        self.reach_character_round()
        match_service.choose_character(self.match_id, self.current(), category_id)
        return self.answer_right()


@pytest.fixture
def active_match(app, categories):
    match = match_service.create_match("alice", "libre", username="Alice")
    match_service.join_match(match.match_code, "bob", username="Bob")
    return match.id


@pytest.fixture
def driver(active_match, categories):
    return MatchDriver(active_match, categories)
