# src/scorekeeper/schemas/api.py

"""Pydantic schemas for the leaderboard HTTP surface."""

from pydantic import BaseModel, Field


# ===============================================
# Request Schemas
# ===============================================
class ScoreSubmit(BaseModel):
    """A score submission.

    Name and score are range-checked by the manager so that the HTTP layer
    and direct callers get the same error types.
    """

    name: str
    score: int


# ===============================================
# Response Schemas
# ===============================================
class ScoreEntry(BaseModel):
    """One ranked row of the leaderboard."""

    rank: int = Field(..., ge=1, description="Position in leaderboard (1-indexed)")
    name: str
    score: int


class LeaderboardRead(BaseModel):
    """Current leaderboard contents and their rendered text."""

    entries: list[ScoreEntry]
    text: str
    max_size: int


class HealthRead(BaseModel):
    """Service health and manager lifecycle state."""

    status: str
    state: str
