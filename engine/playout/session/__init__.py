"""Game sessions: playing matches between players and logging them."""

from .logger import SessionLogger, GameMetrics
from .match import GameRecord, MatchRunner, play_match
