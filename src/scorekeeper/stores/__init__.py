# src/scorekeeper/stores/__init__.py

"""Document store backends for the leaderboard."""

from .base import ChangeCallback, LeaderboardStore, Subscription
from .memory import InMemoryLeaderboardStore
from .sql import SqlLeaderboardStore

__all__ = [
    "ChangeCallback",
    "InMemoryLeaderboardStore",
    "LeaderboardStore",
    "SqlLeaderboardStore",
    "Subscription",
]
