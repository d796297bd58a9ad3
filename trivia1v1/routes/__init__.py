import logging

from flask import jsonify

from trivia1v1.errors import TriviaError
from .admin_routes import admin_bp
from .invitation_routes import invitation_bp
from .match_routes import match_bp
from .stats_routes import stats_bp

logger = logging.getLogger(__name__)


def handle_trivia_error(error):
    logger.info("%s: %s", error.__class__.__name__, error.msg)
    return jsonify(error.to_dict()), error.status_code


def register_routes(app):
    app.register_blueprint(match_bp, url_prefix="/api/matches")
    app.register_blueprint(invitation_bp, url_prefix="/api/invitations")
    app.register_blueprint(stats_bp, url_prefix="/api/trivia")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_error_handler(TriviaError, handle_trivia_error)
