from .enums import (
	MatchStatus,
	MatchPhase,
	InvitationStatus,
	NotificationChannel,
	NotificationStatus,
)
from .category import Category
from .question import Question
from .match import Match
from .match_player import MatchPlayer
from .turn import Turn
from .user_stats import UserStats
from .achievement import Achievement, UserAchievement
from .invitation import Invitation
from .notification import NotificationOutbox
from .log_entry import LogEntry

__all__ = [
	"MatchStatus",
	"MatchPhase",
	"InvitationStatus",
	"NotificationChannel",
	"NotificationStatus",
	"Category",
	"Question",
	"Match",
	"MatchPlayer",
	"Turn",
	"UserStats",
	"Achievement",
	"UserAchievement",
	"Invitation",
	"NotificationOutbox",
	"LogEntry",
]
