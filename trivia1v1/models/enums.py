from enum import Enum


class MatchStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


class MatchPhase(str, Enum):
    WHEEL = "wheel"
    QUESTIONS = "questions"
    CHARACTER_ROUND = "character-round"
    FINISHED = "finished"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class NotificationChannel(str, Enum):
    PUSH = "push"
    EMAIL = "email"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


LEVELS = ("preescolar", "primaria", "secundaria", "universidad", "libre")
OPEN_LEVEL = "libre"
