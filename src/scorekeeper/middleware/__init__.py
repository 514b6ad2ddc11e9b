# src/scorekeeper/middleware/__init__.py

"""Middleware components for the ScoreKeeper API."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
