# src/scorekeeper/stores/memory.py

"""Dictionary-backed store for tests and single-process use."""

from __future__ import annotations

from .base import LeaderboardStore


class InMemoryLeaderboardStore(LeaderboardStore):
    """Keeps documents in a dict and notifies subscribers on every write."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._documents: dict[str, str] = dict(initial or {})
        self.write_count = 0

    async def get(self, key: str) -> str | None:
        return self._documents.get(key)

    async def set(self, key: str, raw: str) -> None:
        self._documents[key] = raw
        self.write_count += 1
        self._notify(key, raw)
