import logging

from flask import current_app

from extensions import db
from trivia1v1.models import LogEntry

logger = logging.getLogger(__name__)


def log_event(source, message):
    """Add a LogEntry to the current session; committed with the caller's transaction."""
    logger.info("[%s] %s", source, message)
    db.session.add(LogEntry(source=source, message=str(message)))


def trim_log_entries(max_entries=None):
    if max_entries is None:
        max_entries = current_app.config.get("MAX_LOG_ENTRIES", 5000)
    count = db.session.query(db.func.count(LogEntry.id)).scalar() or 0
    if count <= max_entries:
        return 0
    old_ids = [row[0] for row in db.session.query(LogEntry.id)
               .order_by(LogEntry.created_at.asc(), LogEntry.id.asc())
               .limit(count - max_entries).all()]
    LogEntry.query.filter(LogEntry.id.in_(old_ids)).delete(synchronize_session=False)
    return len(old_ids)


def recent_log_entries(limit=200, source=None):
    query = LogEntry.query
    if source:
        query = query.filter(LogEntry.source == source)
    return query.order_by(LogEntry.created_at.desc(), LogEntry.id.desc()).limit(limit).all()
