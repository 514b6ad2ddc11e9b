# tests/conftest.py

"""Pytest configuration and fixtures."""

import asyncio
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from scorekeeper.api.leaderboard import get_display, get_manager
from scorekeeper.exceptions import StoreReadError, StoreWriteError
from scorekeeper.main import app
from scorekeeper.presentation import TextSink
from scorekeeper.readiness import BackendReadiness
from scorekeeper.services.leaderboard_manager import LeaderboardManager
from scorekeeper.stores.memory import InMemoryLeaderboardStore


class GatedStore(InMemoryLeaderboardStore):
    """In-memory store whose writes block until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def set(self, key: str, raw: str) -> None:
        await self.gate.wait()
        await super().set(key, raw)


class FailingWriteStore(InMemoryLeaderboardStore):
    """In-memory store whose writes always fail."""

    def __init__(self, error: Exception | None = None, **kw) -> None:
        super().__init__(**kw)
        self.error = error or StoreWriteError("SCORE_LIST", "connection reset")

    async def set(self, key: str, raw: str) -> None:
        raise self.error


class FailingReadStore(InMemoryLeaderboardStore):
    """In-memory store whose reads always fail."""

    async def get(self, key: str) -> str | None:
        raise StoreReadError(key, "connection refused")


class RecordingSink(TextSink):
    """TextSink that also keeps every rendered text in order."""

    def __init__(self) -> None:
        super().__init__()
        self.history: list[str] = []

    def render(self, text: str) -> None:
        super().render(text)
        self.history.append(text)


async def settle(rounds: int = 20) -> None:
    """Give scheduled tasks and callbacks a chance to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def start_ready(manager: LeaderboardManager, readiness: BackendReadiness) -> None:
    """Start a manager and fire its readiness signal."""
    await manager.start()
    readiness.mark_ready()
    await manager.wait_until_ready()


@pytest.fixture
def store() -> InMemoryLeaderboardStore:
    return InMemoryLeaderboardStore()


@pytest.fixture
def readiness() -> BackendReadiness:
    return BackendReadiness()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
async def manager(
    store: InMemoryLeaderboardStore,
    readiness: BackendReadiness,
    sink: RecordingSink,
) -> AsyncGenerator[LeaderboardManager, None]:
    """A ready manager over an empty in-memory store, closed after the test."""
    manager = LeaderboardManager(store, readiness, sink, max_size=3)
    await start_ready(manager, readiness)

    yield manager

    await manager.close()


@pytest.fixture
async def async_client(
    manager: LeaderboardManager, sink: RecordingSink
) -> AsyncGenerator[AsyncClient, None]:
    """Fixture to provide an async test client wired to the test manager."""
    app.dependency_overrides[get_manager] = lambda: manager
    app.dependency_overrides[get_display] = lambda: sink

    transport = ASGITransport(app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up the overrides after the test
    app.dependency_overrides.clear()
