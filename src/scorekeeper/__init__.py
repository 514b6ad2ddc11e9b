# src/scorekeeper/__init__.py

"""ScoreKeeper: a bounded, ranked leaderboard kept in sync with a document store."""

__version__ = "0.1.0"
