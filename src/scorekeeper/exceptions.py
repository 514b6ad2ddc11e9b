# src/scorekeeper/exceptions.py

"""Custom exception hierarchy for ScoreKeeper.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping in API endpoints
2. Detailed error context for logging and debugging
3. Clear distinction between caller errors and store failures
"""

from __future__ import annotations


class ScoreKeeperError(Exception):
    """Base exception for all ScoreKeeper errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ScoreKeeperError):
    """Raised when an environment setting cannot be parsed."""

    def __init__(self, name: str, value: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid value for {name}: {value!r} ({reason})",
            details={"setting": name, "value": value},
        )


# =============================================================================
# Caller Errors (HTTP 4xx)
# =============================================================================


class ValidationError(ScoreKeeperError):
    """Raised when a submitted name or score is rejected before any I/O."""

    pass


class InvalidNameError(ValidationError):
    """Raised when a player name is empty."""

    def __init__(self, name: object) -> None:
        super().__init__(
            message="Name must contain at least one character",
            details={"player_name": name},
        )


class InvalidScoreError(ValidationError):
    """Raised when a score is not a non-negative integer."""

    def __init__(self, score: object) -> None:
        super().__init__(
            message=f"Score must be a non-negative integer, got {score!r}",
            details={"score": score},
        )


class NotReadyError(ScoreKeeperError):
    """Raised when a mutation is attempted before the backend is ready."""

    def __init__(self, state: str) -> None:
        super().__init__(
            message=f"Leaderboard is not ready (state: {state})",
            details={"state": state},
        )


class BusyError(ScoreKeeperError):
    """Raised under the reject policy when another mutation is in flight."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Cannot {operation}: another leaderboard update is in progress",
            details={"operation": operation},
        )


# =============================================================================
# Store Errors (HTTP 502)
# =============================================================================


class StoreError(ScoreKeeperError):
    """Base class for failed store round-trips."""

    pass


class StoreReadError(StoreError):
    """Raised when reading the leaderboard document fails."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to read document '{key}': {reason}",
            details={"key": key, "reason": reason},
        )


class StoreWriteError(StoreError):
    """Raised when writing the leaderboard document fails.

    The manager's local cache is not rolled back when this is raised.
    """

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to write document '{key}': {reason}",
            details={"key": key, "reason": reason},
        )


# =============================================================================
# Payload Errors (recovered locally)
# =============================================================================


class DeserializationError(ScoreKeeperError):
    """Raised when a raw document payload cannot be parsed."""

    def __init__(self, reason: str, payload: str | bytes | None = None) -> None:
        preview = payload[:200] if payload else payload
        super().__init__(
            message=f"Malformed leaderboard document: {reason}",
            details={"payload": preview},
        )
