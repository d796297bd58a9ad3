import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "trivia-dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///trivia.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Optional engine options for better PostgreSQL behavior under concurrency
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
    DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    if not SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS.update({
            "pool_size": DB_POOL_SIZE,
            "max_overflow": DB_MAX_OVERFLOW,
        })

    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    MAX_LOG_ENTRIES = int(os.getenv("MAX_LOG_ENTRIES", 5000))

    # Match rules
    QUESTION_TIME_LIMIT = int(os.getenv("QUESTION_TIME_LIMIT", 20))
    STREAK_FOR_CHARACTER_ROUND = 3
    CHARACTERS_PER_TURN = 3
    CHARACTERS_TO_WIN = 6
    QUESTIONS_PER_SPIN = int(os.getenv("QUESTIONS_PER_SPIN", 10))
    WIN_POINTS = int(os.getenv("WIN_POINTS", 100))
    INVITATION_TTL_HOURS = int(os.getenv("INVITATION_TTL_HOURS", 24))
    QUESTION_TIMER_ENABLED = _env_bool("QUESTION_TIMER_ENABLED", True)

    # Outbound notifications (push + e-mail serverless endpoints)
    PUSH_NOTIFICATION_URL = os.getenv("PUSH_NOTIFICATION_URL", "")
    EMAIL_NOTIFICATION_URL = os.getenv("EMAIL_NOTIFICATION_URL", "")
    NOTIFICATION_API_KEY = os.getenv("NOTIFICATION_API_KEY", "")
    NOTIFICATION_TIMEOUT = float(os.getenv("NOTIFICATION_TIMEOUT", 5))
    NOTIFICATION_MAX_ATTEMPTS = int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", 5))
    NOTIFICATION_RETRY_BASE = float(os.getenv("NOTIFICATION_RETRY_BASE", 30))
    NOTIFICATION_WORKER_ENABLED = _env_bool("NOTIFICATION_WORKER_ENABLED", True)
    NOTIFICATION_WORKER_INTERVAL = float(os.getenv("NOTIFICATION_WORKER_INTERVAL", 10))

    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5000")
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", 5000))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ADMIN_PASSWORD = "test-admin"
    QUESTION_TIMER_ENABLED = False
    NOTIFICATION_WORKER_ENABLED = False
    PUSH_NOTIFICATION_URL = "http://push.test/send-push-notification"
    EMAIL_NOTIFICATION_URL = "http://mail.test/send-trivia-turn-email"
    NOTIFICATION_API_KEY = "test-key"
