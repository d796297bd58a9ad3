import logging

from flask import current_app

from extensions import db
from trivia1v1.errors import ValidationError
from trivia1v1.models import Achievement, UserAchievement, UserStats

logger = logging.getLogger(__name__)

REQUIREMENT_TYPES = ("matches_played", "streak", "total_points", "wins")


def get_or_create_stats(user_id):
    stats = db.session.get(UserStats, user_id)
    if not stats:
        stats = UserStats(
            user_id=user_id,
            total_points=0,
            total_matches=0,
            total_wins=0,
            total_correct=0,
            total_incorrect=0,
            best_streak=0,
            current_streak=0,
        )
        db.session.add(stats)
    return stats


def finalize_match(match):
    """Fold a finished match into each player's stats. Points go to the winner only.

    Runs inside the caller's transaction; returns {user_id: [new achievements]}.
    """
    win_points = int(current_app.config.get("WIN_POINTS", 100))
    earned = {}

    for player in match.players:
        stats = get_or_create_stats(player.user_id)
        won = player.user_id == match.winner_id

        stats.total_matches = (stats.total_matches or 0) + 1
        stats.total_correct = (stats.total_correct or 0) + (player.correct_answers or 0)
        stats.total_incorrect = (stats.total_incorrect or 0) + (player.incorrect_answers or 0)
        stats.best_streak = max(stats.best_streak or 0, player.best_streak or 0)
        if won:
            stats.total_wins = (stats.total_wins or 0) + 1
            stats.total_points = (stats.total_points or 0) + win_points
            stats.current_streak = (stats.current_streak or 0) + 1
        else:
            stats.current_streak = 0

        earned[player.user_id] = check_achievements(stats)

    return earned


def _requirement_met(achievement, stats):
    value = achievement.requirement_value or 0
    if achievement.requirement_type == "matches_played":
        return (stats.total_matches or 0) >= value
    if achievement.requirement_type == "streak":
        return (stats.best_streak or 0) >= value
    if achievement.requirement_type == "total_points":
        return (stats.total_points or 0) >= value
    if achievement.requirement_type == "wins":
        return (stats.total_wins or 0) >= value
    return False


def check_achievements(stats):
    earned_ids = {
        row[0] for row in db.session.query(UserAchievement.achievement_id)
        .filter(UserAchievement.user_id == stats.user_id).all()
    }
    new = []
    for achievement in Achievement.query.order_by(Achievement.id).all():
        if achievement.id in earned_ids:
            continue
        if _requirement_met(achievement, stats):
            db.session.add(UserAchievement(user_id=stats.user_id, achievement_id=achievement.id))
            new.append(achievement)
            logger.info("Achievement %s earned by %s", achievement.name, stats.user_id)
    return new


def get_user_stats(user_id):
    stats = db.session.get(UserStats, user_id)
    if stats:
        return stats.to_dict()
    return UserStats(user_id=user_id).to_dict()


def get_ranking(limit=100):
    rows = UserStats.query.order_by(
        UserStats.total_points.desc(),
        UserStats.total_wins.desc(),
        UserStats.user_id,
    ).limit(limit).all()
    ranking = []
    for position, stats in enumerate(rows, start=1):
        entry = stats.to_dict()
        entry["position"] = position
        ranking.append(entry)
    return ranking


def list_user_achievements(user_id):
    rows = UserAchievement.query.filter_by(user_id=user_id) \
        .order_by(UserAchievement.earned_at.desc()).all()
    return [r.to_dict() for r in rows]


def create_achievement(name, requirement_type, requirement_value, description="", icon=""):
    if not (name or "").strip():
        raise ValidationError("Achievement name is required")
    if requirement_type not in REQUIREMENT_TYPES:
        raise ValidationError(f"Unknown requirement type: {requirement_type}")
    try:
        requirement_value = int(requirement_value)
    except (TypeError, ValueError):
        raise ValidationError("requirement_value must be a number")
    achievement = Achievement(
        name=name.strip(),
        description=description or "",
        icon=icon or "",
        requirement_type=requirement_type,
        requirement_value=requirement_value,
    )
    db.session.add(achievement)
    db.session.commit()
    return achievement


def list_achievements():
    return Achievement.query.order_by(Achievement.id).all()
