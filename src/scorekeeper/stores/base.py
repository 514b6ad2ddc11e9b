# src/scorekeeper/stores/base.py

"""The key-value document store interface the leaderboard persists through."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str | None], None]


class Subscription:
    """Handle for a change subscription. ``cancel()`` is idempotent."""

    def __init__(self, store: LeaderboardStore, key: str, callback: ChangeCallback):
        self._store: LeaderboardStore | None = store
        self.key = key
        self.callback = callback

    @property
    def active(self) -> bool:
        return self._store is not None

    def cancel(self) -> None:
        if self._store is None:
            return
        self._store._remove_subscription(self)
        self._store = None


class LeaderboardStore(ABC):
    """
    Asynchronous document store keyed by name.

    Implementations provide ``get``/``set``; this base class keeps the
    subscriber registry. After every successful ``set`` all subscribers of
    that key are notified with the new raw payload, including the writer.
    Notifications are delivered on the event loop after the write returns,
    in write order.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)

    async def initialize(self) -> None:
        """Prepare the backend for use (create tables, open connections)."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the raw document stored under ``key``, or None if absent.

        Raises:
            StoreReadError: If the round-trip fails.
        """

    @abstractmethod
    async def set(self, key: str, raw: str) -> None:
        """Replace the document stored under ``key``.

        Raises:
            StoreWriteError: If the round-trip fails.
        """

    def subscribe(self, key: str, callback: ChangeCallback) -> Subscription:
        """Register ``callback`` to receive the raw payload whenever ``key`` changes."""
        subscription = Subscription(self, key, callback)
        self._subscriptions[key].append(subscription)
        logger.debug("Subscribed to document changes", extra={"key": key})
        return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.key, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
            logger.debug(
                "Unsubscribed from document changes", extra={"key": subscription.key}
            )

    def _notify(self, key: str, raw: str | None) -> None:
        """Schedule change callbacks for every current subscriber of ``key``."""
        loop = asyncio.get_running_loop()
        for subscription in list(self._subscriptions.get(key, [])):
            loop.call_soon(self._deliver, subscription, raw)

    @staticmethod
    def _deliver(subscription: Subscription, raw: str | None) -> None:
        # A subscriber may have cancelled between scheduling and delivery
        if not subscription.active:
            return
        try:
            subscription.callback(raw)
        except Exception:
            logger.error(
                "Change subscriber raised",
                extra={"key": subscription.key},
                exc_info=True,
            )
