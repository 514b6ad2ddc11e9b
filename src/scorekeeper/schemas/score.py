# src/scorekeeper/schemas/score.py

"""Score record and leaderboard document schemas.

The aliased field names (``playerScoreDataList``, ``userName``, ``score``) are
the persisted wire format. Existing stored leaderboards use exactly these
keys, so they must not be renamed.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from scorekeeper.exceptions import DeserializationError


class ScoreRecord(BaseModel):
    """A single name/score entry. Immutable once created.

    Attributes:
        name: Player display name (non-empty)
        score: Non-negative integer score
    """

    name: str = Field(..., min_length=1, alias="userName")
    score: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)


class LeaderboardDocument(BaseModel):
    """The whole leaderboard as it is read from and written to the store."""

    records: list[ScoreRecord] = Field(
        default_factory=list, alias="playerScoreDataList"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("records", mode="before")
    @classmethod
    def _null_list_is_empty(cls, value: object) -> object:
        # Stores that drop empty arrays hand back null for a cleared board
        return [] if value is None else value


def serialize_document(document: LeaderboardDocument) -> str:
    """Render a document in its persisted JSON form."""
    return document.model_dump_json(by_alias=True)


def deserialize_document(raw: str | bytes) -> LeaderboardDocument:
    """Parse a persisted JSON payload.

    Raises:
        DeserializationError: If the payload is empty, not JSON, or does not
            match the document shape.
    """
    if not raw or not raw.strip():
        raise DeserializationError("empty payload", raw)
    try:
        return LeaderboardDocument.model_validate_json(raw)
    except PydanticValidationError as e:
        raise DeserializationError(str(e.errors()[0]["msg"]), raw) from e
