import logging
import socket

from flask import Flask

from config import Config
from extensions import db, socketio

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level_name):
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    socketio.init_app(app)

    # models must be imported before create_all
    from trivia1v1 import models  # noqa: F401
    from trivia1v1.routes import register_routes
    from trivia1v1.sockets import register_sockets
    from trivia1v1.services.notification_service import start_notification_worker

    register_routes(app)
    register_sockets(socketio)

    with app.app_context():
        db.create_all()

    start_notification_worker(app)
    return app


if __name__ == "__main__":
    app = create_app()
    host = app.config.get("APP_HOST", "0.0.0.0")
    port = int(app.config.get("APP_PORT", 5000))
    try:
        ip = socket.gethostbyname(socket.gethostname())
    except OSError:
        ip = host
    logging.getLogger(__name__).info("TRIVIA 1v1 READY ON %s:%s", ip, port)
    socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)
