# src/scorekeeper/services/leaderboard_manager.py

"""The leaderboard state machine: ingestion, persistence and change fan-out."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol, TypeVar

from scorekeeper.config import DEFAULT_LEADERBOARD_KEY, DEFAULT_MAX_SIZE, MutationPolicy
from scorekeeper.exceptions import (
    BusyError,
    DeserializationError,
    InvalidNameError,
    InvalidScoreError,
    NotReadyError,
    StoreReadError,
    StoreWriteError,
)
from scorekeeper.presentation import PresentationSink, format_leaderboard
from scorekeeper.ranking import rank
from scorekeeper.readiness import BackendReadiness
from scorekeeper.schemas.score import (
    LeaderboardDocument,
    ScoreRecord,
    deserialize_document,
    serialize_document,
)
from scorekeeper.stores.base import LeaderboardStore, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_UNACKNOWLEDGED_WRITES = 32

# A queued unit of work and the future its caller awaits (None for
# fire-and-forget jobs such as change notifications).
_Job = tuple[Callable[[], Awaitable[object]], "asyncio.Future[object] | None"]


class ManagerState(str, Enum):
    """Lifecycle of a LeaderboardManager."""

    UNINITIALIZED = "uninitialized"
    AWAITING_BACKEND = "awaiting_backend"
    READY = "ready"
    CLOSED = "closed"


class ScoreInput(Protocol):
    """Source of a name and score typed in by a user, as raw text."""

    def read_name(self) -> str: ...

    def read_score(self) -> str: ...


class LeaderboardManager:
    """
    Owns the cached leaderboard and keeps it in sync with the store.

    One manager exists per leaderboard and is passed to its consumers.
    After ``start()`` it waits for the backend readiness signal, loads the
    document once, subscribes to changes and renders the list. From then on:

    - ``add_score`` and ``clear_list`` update the cache, render it and write
      the document. They run one at a time on a single worker task. Under
      ``MutationPolicy.QUEUE`` later callers wait their turn (FIFO); under
      ``MutationPolicy.REJECT`` they fail fast with ``BusyError``.
    - Change notifications from the store, including those caused by this
      manager's own writes, go through the same worker and replace the cache
      wholesale. A notification whose document has already been superseded
      by a newer local write is skipped.
    - A failed write raises ``StoreWriteError`` but leaves the updated cache
      in place.
    """

    def __init__(
        self,
        store: LeaderboardStore,
        readiness: BackendReadiness,
        sink: PresentationSink,
        *,
        key: str = DEFAULT_LEADERBOARD_KEY,
        max_size: int = DEFAULT_MAX_SIZE,
        policy: MutationPolicy = MutationPolicy.QUEUE,
        score_input: ScoreInput | None = None,
    ) -> None:
        self._store = store
        self._readiness = readiness
        self._sink = sink
        self.key = key
        self.max_size = max_size
        self.policy = policy
        self._score_input = score_input

        self._state = ManagerState.UNINITIALIZED
        self._records: list[ScoreRecord] = []
        # Set once startup has finished, whether or not it reached READY
        self._startup_done = asyncio.Event()
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._worker_task: asyncio.Task[None] | None = None
        self._startup_task: asyncio.Task[None] | None = None
        self._subscription: Subscription | None = None
        self._mutations_in_flight = 0
        # Raw payloads this manager has written whose change notification
        # has not come back yet, oldest first.
        self._unacknowledged_writes: list[str] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def records(self) -> list[ScoreRecord]:
        """A copy of the cached leaderboard in rank order."""
        return list(self._records)

    async def start(self) -> None:
        """Begin waiting for the backend. Calling it again has no effect."""
        if self._state is not ManagerState.UNINITIALIZED:
            return
        self._state = ManagerState.AWAITING_BACKEND
        self._worker_task = asyncio.create_task(
            self._run_worker(), name=f"leaderboard-worker:{self.key}"
        )
        self._startup_task = asyncio.create_task(
            self._await_backend(), name=f"leaderboard-startup:{self.key}"
        )
        logger.debug("Leaderboard manager waiting for backend", extra={"key": self.key})

    async def wait_until_ready(self) -> None:
        """Wait for startup to finish.

        Raises:
            NotReadyError: If the manager was never started, has been closed,
                or startup finished without the leaderboard becoming ready.
        """
        if self._state in (ManagerState.UNINITIALIZED, ManagerState.CLOSED):
            raise NotReadyError(self._state.value)
        await self._startup_done.wait()
        self._ensure_ready()

    async def idle(self) -> None:
        """Wait until every queued job, including change notifications, is done."""
        # Let already-scheduled store notifications enqueue their jobs first
        await asyncio.sleep(0)
        await self._queue.join()

    async def close(self) -> None:
        """Unsubscribe, stop background work and fail any queued callers.

        Safe to call more than once.
        """
        if self._state is ManagerState.CLOSED:
            return
        self._state = ManagerState.CLOSED

        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

        tasks = [t for t in (self._startup_task, self._worker_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._startup_task = None
        self._worker_task = None

        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            if future is not None and not future.done():
                future.set_exception(NotReadyError(self._state.value))

        self._unacknowledged_writes.clear()
        logger.info("Leaderboard manager closed", extra={"key": self.key})

    async def __aenter__(self) -> LeaderboardManager:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _await_backend(self) -> None:
        try:
            await self._readiness.wait()
            await self._submit(self._load_initial)
        except StoreReadError as e:
            logger.error(
                "Initial leaderboard read failed; manager is inoperative",
                extra=e.details,
            )
        except Exception:
            logger.error(
                "Leaderboard startup failed; manager is inoperative",
                extra={"key": self.key},
                exc_info=True,
            )
        finally:
            self._startup_done.set()

    async def _load_initial(self) -> None:
        raw = await self._store.get(self.key)
        if raw:
            try:
                self._records = deserialize_document(raw).records
            except DeserializationError as e:
                logger.warning(
                    "Stored leaderboard is malformed, starting empty: %s",
                    e.message,
                    extra=e.details,
                )
                self._records = []
        else:
            # Nothing stored yet: a fresh, empty leaderboard
            self._records = []

        self._subscription = self._store.subscribe(self.key, self._on_remote_change)
        self._state = ManagerState.READY
        self._render()
        logger.info(
            "Leaderboard ready",
            extra={"key": self.key, "record_count": len(self._records)},
        )

    # ------------------------------------------------------------------
    # Work queue
    # ------------------------------------------------------------------

    async def _run_worker(self) -> None:
        while True:
            operation, future = await self._queue.get()
            try:
                result = await operation()
            except asyncio.CancelledError:
                if future is not None and not future.done():
                    future.cancel()
                raise
            except Exception as e:
                if future is not None:
                    if not future.done():
                        future.set_exception(e)
                else:
                    logger.error("Background leaderboard job failed", exc_info=True)
            else:
                if future is not None and not future.done():
                    future.set_result(result)
            finally:
                self._queue.task_done()

    async def _submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((operation, future))  # type: ignore[arg-type]
        return await future

    async def _mutate(self, operation: str, job: Callable[[], Awaitable[T]]) -> T:
        if self.policy is MutationPolicy.REJECT and self._mutations_in_flight:
            logger.warning(
                "Rejected leaderboard update while another is in flight",
                extra={"operation": operation},
            )
            raise BusyError(operation)

        self._mutations_in_flight += 1
        try:
            return await self._submit(job)
        finally:
            self._mutations_in_flight -= 1

    def _ensure_ready(self) -> None:
        if self._state is not ManagerState.READY:
            raise NotReadyError(self._state.value)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def add_score(self, name: str, score: int) -> list[ScoreRecord]:
        """
        Rank a new score into the leaderboard and persist it.

        Returns the leaderboard after the update.

        Raises:
            InvalidNameError: If ``name`` is empty.
            InvalidScoreError: If ``score`` is not a non-negative integer.
            NotReadyError: If the backend is not ready yet.
            BusyError: Under the reject policy, if an update is in flight.
            StoreWriteError: If the write fails. The cache keeps the new score.
        """
        record = self._validate(name, score)
        self._ensure_ready()
        return await self._mutate("add score", lambda: self._apply_add(record))

    async def add_score_from_input(self) -> list[ScoreRecord]:
        """Submit the name and score currently held by the score input."""
        if self._score_input is None:
            raise RuntimeError("No score input configured for this leaderboard")

        name = self._score_input.read_name()
        score_text = self._score_input.read_score()
        logger.debug(
            "Read score input", extra={"player_name": name, "score_text": score_text}
        )
        try:
            score = int(score_text.strip())
        except ValueError:
            raise InvalidScoreError(score_text) from None
        return await self.add_score(name, score)

    async def clear_list(self) -> None:
        """Empty the leaderboard and persist the empty document."""
        self._ensure_ready()
        await self._mutate("clear list", self._apply_clear)

    async def retrieve_up_to_date_scores(self) -> list[ScoreRecord]:
        """Read the stored document, replace the cache with it and render."""
        self._ensure_ready()
        return await self._submit(self._apply_refresh)

    def handle_remote_change(self, raw: str | None) -> bool:
        """
        Apply a document delivered by a store change notification.

        Returns True if the cache was replaced. Empty or malformed payloads
        and notifications for documents this manager has already superseded
        leave the cache untouched.
        """
        if self._state is ManagerState.CLOSED:
            return False

        if raw and raw in self._unacknowledged_writes:
            index = self._unacknowledged_writes.index(raw)
            superseded = index < len(self._unacknowledged_writes) - 1
            del self._unacknowledged_writes[: index + 1]
            if superseded:
                logger.debug(
                    "Skipping change superseded by a newer local write",
                    extra={"key": self.key},
                )
                return False

        return self._replace_from_raw(raw, source="remote change")

    # ------------------------------------------------------------------
    # Worker jobs
    # ------------------------------------------------------------------

    async def _apply_add(self, record: ScoreRecord) -> list[ScoreRecord]:
        self._records = rank(self._records, record, self.max_size)
        logger.debug(
            "Ranked new score",
            extra={
                "player_name": record.name,
                "score": record.score,
                "record_count": len(self._records),
            },
        )
        self._render()
        await self._write()
        logger.info(
            "Score added", extra={"player_name": record.name, "score": record.score}
        )
        return list(self._records)

    async def _apply_clear(self) -> None:
        self._records = []
        self._render()
        await self._write()
        logger.info("Leaderboard cleared", extra={"key": self.key})

    async def _apply_refresh(self) -> list[ScoreRecord]:
        raw = await self._store.get(self.key)
        # A fresh read supersedes every write still awaiting its echo
        self._unacknowledged_writes.clear()
        if not self._replace_from_raw(raw, source="refresh"):
            self._render()
        return list(self._records)

    async def _apply_remote(self, raw: str | None) -> None:
        self.handle_remote_change(raw)

    def _on_remote_change(self, raw: str | None) -> None:
        if self._state is ManagerState.CLOSED:
            return
        self._queue.put_nowait((lambda: self._apply_remote(raw), None))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(name: object, score: object) -> ScoreRecord:
        if not isinstance(name, str) or not name:
            raise InvalidNameError(name)
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InvalidScoreError(score)
        return ScoreRecord(name=name, score=score)

    def _replace_from_raw(self, raw: str | None, source: str) -> bool:
        if not raw:
            logger.info(
                "No leaderboard document received; keeping cached list",
                extra={"key": self.key, "source": source},
            )
            return False
        try:
            document = deserialize_document(raw)
        except DeserializationError as e:
            logger.warning(
                "Ignoring malformed leaderboard document: %s",
                e.message,
                extra={"key": self.key, "source": source},
            )
            return False

        self._records = document.records
        self._render()
        return True

    async def _write(self) -> None:
        raw = serialize_document(LeaderboardDocument(records=self._records))
        self._unacknowledged_writes.append(raw)
        # Stores that never echo a write back would otherwise grow this forever
        del self._unacknowledged_writes[:-MAX_UNACKNOWLEDGED_WRITES]
        try:
            await self._store.set(self.key, raw)
        except StoreWriteError as e:
            self._forget_write(raw)
            logger.error(
                "Leaderboard write failed; local cache keeps the change",
                extra=e.details,
            )
            raise
        except Exception as e:
            self._forget_write(raw)
            error = StoreWriteError(self.key, str(e))
            logger.error(
                "Leaderboard write failed; local cache keeps the change",
                extra=error.details,
                exc_info=True,
            )
            raise error from e

    def _forget_write(self, raw: str) -> None:
        # No notification will follow a failed write
        if self._unacknowledged_writes and self._unacknowledged_writes[-1] == raw:
            self._unacknowledged_writes.pop()

    def _render(self) -> None:
        self._sink.render(format_leaderboard(self._records))
