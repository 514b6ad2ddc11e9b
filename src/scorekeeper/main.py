# src/scorekeeper/main.py

"""Main FastAPI application for ScoreKeeper."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api import leaderboard
from .config import Settings, configure_logging, load_settings
from .db.session import create_engine
from .exceptions import (
    BusyError,
    NotReadyError,
    ScoreKeeperError,
    StoreError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware
from .presentation import TextSink
from .readiness import BackendReadiness, initialize_backend
from .schemas.api import HealthRead
from .services.leaderboard_manager import LeaderboardManager
from .stores.sql import SqlLeaderboardStore

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Settings are read from the environment at startup
    unless given explicitly."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Wire store, readiness signal, display and manager for the app's lifetime."""
        resolved = settings or load_settings()
        configure_logging(resolved)

        store = SqlLeaderboardStore(
            create_engine(resolved), timeout=resolved.store_timeout
        )
        readiness = BackendReadiness()
        display = TextSink()
        manager = LeaderboardManager(
            store,
            readiness,
            display,
            key=resolved.leaderboard_key,
            max_size=resolved.max_size,
            policy=resolved.mutation_policy,
        )
        app.state.display = display
        app.state.manager = manager

        await manager.start()
        if await initialize_backend(readiness, store):
            try:
                await manager.wait_until_ready()
            except NotReadyError:
                # Serve anyway; /health reports the manager as degraded
                logger.warning(
                    "Leaderboard did not become ready during startup",
                    extra={"key": manager.key, "state": manager.state.value},
                )
        yield
        # Shutdown: unsubscribe and release database connections
        await manager.close()
        await store.close()

    app = FastAPI(title="ScoreKeeper API", lifespan=lifespan)
    app.add_middleware(RequestLoggingMiddleware)
    _register_exception_handlers(app)
    app.include_router(leaderboard.router)

    @app.get("/health", tags=["Health"], response_model=HealthRead)
    async def health_check(request: Request) -> HealthRead:
        """Health check reporting the leaderboard manager's state."""
        manager = getattr(request.app.state, "manager", None)
        state = manager.state.value if manager is not None else "uninitialized"
        status = "healthy" if state == "ready" else "degraded"
        return HealthRead(status=status, state=state)

    return app


# =============================================================================
# Global Exception Handlers
# =============================================================================


def _error_response(status_code: int, exc: ScoreKeeperError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle rejected names and scores -> 422."""
        logger.warning("Validation error: %s", exc.message, extra=exc.details)
        return _error_response(422, exc)

    @app.exception_handler(NotReadyError)
    async def not_ready_handler(request: Request, exc: NotReadyError) -> JSONResponse:
        """Handle updates before the backend is ready -> 503."""
        logger.warning("Leaderboard not ready: %s", exc.message, extra=exc.details)
        return _error_response(503, exc)

    @app.exception_handler(BusyError)
    async def busy_handler(request: Request, exc: BusyError) -> JSONResponse:
        """Handle rejected concurrent updates -> 409."""
        logger.warning("Leaderboard busy: %s", exc.message, extra=exc.details)
        return _error_response(409, exc)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Handle failed store round-trips -> 502."""
        logger.error("Store error: %s", exc.message, extra=exc.details)
        return _error_response(502, exc)

    @app.exception_handler(ScoreKeeperError)
    async def scorekeeper_error_handler(
        request: Request, exc: ScoreKeeperError
    ) -> JSONResponse:
        """Catch-all for any other ScoreKeeper errors -> 500."""
        logger.error(
            "ScoreKeeper error: %s", exc.message, extra=exc.details, exc_info=True
        )
        return _error_response(500, exc)

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions."""
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal server error occurred"},
        )


app = create_app()
