# src/scorekeeper/schemas/__init__.py

"""Pydantic schemas for persisted documents and API payloads."""

from .api import HealthRead, LeaderboardRead, ScoreEntry, ScoreSubmit
from .score import (
    LeaderboardDocument,
    ScoreRecord,
    deserialize_document,
    serialize_document,
)

__all__ = [
    # Persisted document
    "LeaderboardDocument",
    "ScoreRecord",
    "deserialize_document",
    "serialize_document",
    # API
    "HealthRead",
    "LeaderboardRead",
    "ScoreEntry",
    "ScoreSubmit",
]
