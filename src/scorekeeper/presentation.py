# src/scorekeeper/presentation.py

"""Text rendering of the leaderboard and the sinks that display it."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from scorekeeper.schemas.score import ScoreRecord


class PresentationSink(Protocol):
    """Anything that can display the leaderboard text.

    Each call replaces whatever was displayed before.
    """

    def render(self, text: str) -> None: ...


def format_leaderboard(records: Sequence[ScoreRecord]) -> str:
    """Format records as ``"{rank}. {name} - {score}"`` lines, 1-indexed."""
    return "\n".join(
        f"{position}. {record.name} - {record.score}"
        for position, record in enumerate(records, start=1)
    )


class TextSink:
    """Keeps the most recently rendered text in memory."""

    def __init__(self) -> None:
        self.text = ""
        self.render_count = 0

    def render(self, text: str) -> None:
        self.text = text
        self.render_count += 1

