# src/scorekeeper/ranking.py

"""Ranking and truncation policy for the leaderboard."""

from __future__ import annotations

from collections.abc import Sequence

from scorekeeper.schemas.score import ScoreRecord


def rank(
    current: Sequence[ScoreRecord], incoming: ScoreRecord, max_size: int
) -> list[ScoreRecord]:
    """
    Insert a record into an ordered leaderboard and trim it to size.

    The incoming record is appended before a stable descending sort, so it
    ranks below any existing record with the same score. Entries beyond
    ``max_size`` are dropped from the tail. A non-positive ``max_size``
    always yields an empty board.

    The caller is responsible for validating ``incoming``.
    """
    if max_size <= 0:
        return []

    # sorted() keeps equal elements in input order even with reverse=True
    ranked = sorted([*current, incoming], key=lambda r: r.score, reverse=True)
    return ranked[:max_size]
