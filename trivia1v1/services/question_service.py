import random

from extensions import db
from trivia1v1.errors import NotFoundError, ValidationError
from trivia1v1.models import Category, Question
from trivia1v1.models.enums import LEVELS, OPEN_LEVEL

_rng = random.Random()


def set_shuffle_seed(seed):
    _rng.seed(seed)


def list_categories():
    return Category.query.order_by(Category.name).all()


def get_category(category_id):
    category = db.session.get(Category, category_id) if category_id is not None else None
    if not category:
        raise NotFoundError("Category not found")
    return category


def get_question(question_id):
    question = db.session.get(Question, question_id) if question_id is not None else None
    if not question:
        raise NotFoundError("Question not found")
    return question


def _eligible_query(category_id, level, exclude_ids=()):
    query = Question.query.filter(Question.is_active.is_(True))
    if category_id is not None:
        query = query.filter(Question.category_id == category_id)
    if level and level != OPEN_LEVEL:
        query = query.filter(Question.level == level)
    exclude_ids = list(exclude_ids or [])
    if exclude_ids:
        query = query.filter(~Question.id.in_(exclude_ids))
    return query


def fetch_questions(category_id, level=OPEN_LEVEL, limit=10, exclude_ids=()):
    """Shuffled, bounded sample of active questions for a category and level."""
    questions = _eligible_query(category_id, level, exclude_ids).all()
    _rng.shuffle(questions)
    return questions[:max(0, int(limit))]


def pick_random_question(category_id, level=OPEN_LEVEL, exclude_ids=()):
    questions = _eligible_query(category_id, level, exclude_ids).all()
    if not questions:
        return None
    return _rng.choice(questions)


def categories_with_questions(level=OPEN_LEVEL, exclude_ids=()):
    rows = _eligible_query(None, level, exclude_ids) \
        .with_entities(Question.category_id) \
        .distinct().all()
    return sorted(row[0] for row in rows)


def random_category_id(level=OPEN_LEVEL, exclude_ids=()):
    """The wheel: a random category that still has questions for this turn."""
    available = categories_with_questions(level, exclude_ids)
    if not available:
        raise ValidationError("No categories with questions left for this turn")
    return _rng.choice(available)


def get_question_unlock_payload(question, started_at=None, time_limit=None):
    payload = question.to_public_dict()
    payload["question_started_at"] = started_at
    payload["question_duration"] = time_limit
    return payload


def get_question_answer_key(question):
    options = question.get_options()
    idx = int(question.correct_answer or 0)
    return {
        "question_id": question.id,
        "correct_answer": idx,
        "correct_option": options[idx] if 0 <= idx < len(options) else "",
    }


# --- admin helpers ---

def create_category(name, icon="", color="", description=""):
    name = (name or "").strip()
    if not name:
        raise ValidationError("Category name is required")
    if Category.query.filter_by(name=name).first():
        raise ValidationError("Category already exists")
    category = Category(name=name, icon=icon or "", color=color or "", description=description or "")
    db.session.add(category)
    db.session.commit()
    return category


def create_question(category_id, question_text, options, correct_answer,
                    level=OPEN_LEVEL, difficulty="medium", points=10, image_url=None):
    get_category(category_id)
    question_text = (question_text or "").strip()
    if not question_text:
        raise ValidationError("Question text is required")
    if not isinstance(options, list) or len(options) < 2:
        raise ValidationError("A question needs at least two options")
    try:
        correct_answer = int(correct_answer)
    except (TypeError, ValueError):
        raise ValidationError("correct_answer must be an option index")
    if not 0 <= correct_answer < len(options):
        raise ValidationError("correct_answer is out of range")
    if level not in LEVELS:
        raise ValidationError(f"Unknown level: {level}")

    question = Question(
        category_id=category_id,
        question_text=question_text,
        correct_answer=correct_answer,
        level=level,
        difficulty=difficulty or "medium",
        points=int(points or 0),
        image_url=image_url,
        is_active=True,
    )
    question.set_options([str(o) for o in options])
    db.session.add(question)
    db.session.commit()
    return question


def list_questions(category_id=None, level=None, include_inactive=True):
    query = Question.query
    if category_id is not None:
        query = query.filter(Question.category_id == category_id)
    if level:
        query = query.filter(Question.level == level)
    if not include_inactive:
        query = query.filter(Question.is_active.is_(True))
    return query.order_by(Question.category_id, Question.id).all()


def toggle_question(question_id):
    question = get_question(question_id)
    question.is_active = not question.is_active
    db.session.commit()
    return question


def delete_question(question_id):
    question = get_question(question_id)
    db.session.delete(question)
    db.session.commit()
