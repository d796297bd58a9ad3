from flask import request

from trivia1v1.errors import AuthError, ValidationError


def json_body():
    return request.get_json(silent=True) or {}


def normalize_user_id(value):
    """User ids are stored as strings; JSON clients may send numbers."""
    user_id = "" if value is None else str(value).strip()
    if not user_id:
        raise AuthError("Missing user id")
    return user_id


def current_user_id():
    """Caller identity as forwarded by the platform (header wins over body)."""
    user_id = request.headers.get("X-User-Id")
    if user_id is None:
        user_id = json_body().get("user_id")
    if user_id is None:
        user_id = request.args.get("user_id")
    return normalize_user_id(user_id)


def int_arg(value, name):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
