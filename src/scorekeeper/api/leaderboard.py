# src/scorekeeper/api/leaderboard.py

"""API endpoints for viewing and updating the leaderboard."""

from fastapi import APIRouter, Depends, Request, status

from scorekeeper.presentation import TextSink
from scorekeeper.schemas import api as api_schema
from scorekeeper.schemas.score import ScoreRecord
from scorekeeper.services.leaderboard_manager import LeaderboardManager

# - prefix="/leaderboard": All routes defined here will be prefixed with /leaderboard
# - tags=["Leaderboard"]: Groups these endpoints under "Leaderboard" in the API docs
router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


def get_manager(request: Request) -> LeaderboardManager:
    """FastAPI dependency returning the application's leaderboard manager."""
    return request.app.state.manager  # type: ignore[no-any-return]


def get_display(request: Request) -> TextSink:
    """FastAPI dependency returning the sink the manager renders into."""
    return request.app.state.display  # type: ignore[no-any-return]


def _to_response(
    records: list[ScoreRecord], display: TextSink, max_size: int
) -> api_schema.LeaderboardRead:
    entries = [
        api_schema.ScoreEntry(rank=position, name=record.name, score=record.score)
        for position, record in enumerate(records, start=1)
    ]
    return api_schema.LeaderboardRead(
        entries=entries, text=display.text, max_size=max_size
    )


@router.get("", response_model=api_schema.LeaderboardRead)
async def read_leaderboard(
    manager: LeaderboardManager = Depends(get_manager),
    display: TextSink = Depends(get_display),
) -> api_schema.LeaderboardRead:
    """Return the cached leaderboard and its rendered text."""
    return _to_response(manager.records, display, manager.max_size)


@router.post(
    "/scores",
    response_model=api_schema.LeaderboardRead,
    status_code=status.HTTP_201_CREATED,
)
async def submit_score(
    score_in: api_schema.ScoreSubmit,
    manager: LeaderboardManager = Depends(get_manager),
    display: TextSink = Depends(get_display),
) -> api_schema.LeaderboardRead:
    """
    Submit a score.

    - **name**: Player name, at least one character.
    - **score**: Non-negative integer.

    Raises:
        422 Unprocessable Entity: If name or score is invalid.
        503 Service Unavailable: If the backend is not ready.
        409 Conflict: If another update is in flight (reject policy only).
        502 Bad Gateway: If the store write fails.
    """
    records = await manager.add_score(score_in.name, score_in.score)
    return _to_response(records, display, manager.max_size)


@router.post("/refresh", response_model=api_schema.LeaderboardRead)
async def refresh_leaderboard(
    manager: LeaderboardManager = Depends(get_manager),
    display: TextSink = Depends(get_display),
) -> api_schema.LeaderboardRead:
    """Re-read the stored leaderboard and re-render it."""
    records = await manager.retrieve_up_to_date_scores()
    return _to_response(records, display, manager.max_size)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_leaderboard(
    manager: LeaderboardManager = Depends(get_manager),
) -> None:
    """Remove every score from the leaderboard."""
    await manager.clear_list()
