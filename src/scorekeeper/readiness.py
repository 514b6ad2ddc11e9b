# src/scorekeeper/readiness.py

"""One-shot backend readiness signal and the startup routine that fires it."""

from __future__ import annotations

import asyncio
import logging

from scorekeeper.stores.base import LeaderboardStore

logger = logging.getLogger(__name__)


class BackendReadiness:
    """
    Resolves exactly once, when the backend becomes usable.

    Waiters block until ``mark_ready()`` is called. A failed startup never
    resolves the signal, so anything waiting on it stays inoperative instead
    of crashing.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.failure: BaseException | None = None

    @property
    def is_ready(self) -> bool:
        return self._event.is_set()

    def mark_ready(self) -> None:
        if self._event.is_set():
            logger.debug("Backend readiness already signalled")
            return
        self._event.set()
        logger.info("Backend is ready")

    def mark_failed(self, error: BaseException) -> None:
        self.failure = error
        logger.error("Backend failed to initialize: %s", error)

    async def wait(self) -> None:
        await self._event.wait()


async def initialize_backend(
    readiness: BackendReadiness, store: LeaderboardStore
) -> bool:
    """
    Initialize the store and fire the readiness signal.

    Returns True on success. On failure the error is logged, recorded on
    ``readiness`` and False is returned; the signal is left unresolved.
    """
    try:
        await store.initialize()
    except Exception as e:
        readiness.mark_failed(e)
        return False

    readiness.mark_ready()
    return True
