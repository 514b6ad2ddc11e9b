"""Persistence models and engine setup for the SQL store."""
