# src/scorekeeper/config.py

"""Runtime settings loaded from the environment with Pydantic Settings."""

from __future__ import annotations

import logging
import os
from enum import Enum

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

# The persisted document key. Every manager sharing a leaderboard must use
# the same value, and existing data lives under this name.
DEFAULT_LEADERBOARD_KEY = "SCORE_LIST"
DEFAULT_MAX_SIZE = 10


class MutationPolicy(str, Enum):
    """How a manager treats a mutation issued while another is in flight."""

    QUEUE = "queue"
    REJECT = "reject"


class Settings(BaseSettings):
    """Configuration for one leaderboard process.

    Fields are read from environment variables of the same name (case
    insensitive) unless an alias names the variable. Explicit keyword
    arguments use the field names and take precedence over the environment.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./scorekeeper.db",
        description="SQLAlchemy URL for the document store",
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    db_pool_size: int = Field(default=20, gt=0)
    db_max_overflow: int = Field(default=10, ge=0)
    db_pool_recycle: int = Field(default=3600, gt=0)

    # Leaderboard
    leaderboard_key: str = Field(
        default=DEFAULT_LEADERBOARD_KEY,
        min_length=1,
        description="Document key the leaderboard is stored under",
    )
    max_size: int = Field(
        default=DEFAULT_MAX_SIZE,
        gt=0,
        validation_alias="LEADERBOARD_MAX_SIZE",
        description="Maximum number of records kept",
    )
    mutation_policy: MutationPolicy = Field(
        default=MutationPolicy.QUEUE,
        validation_alias="LEADERBOARD_MUTATION_POLICY",
        description="Queue (FIFO) or reject concurrent mutations",
    )
    store_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias="STORE_TIMEOUT_SECONDS",
        description="Seconds before a store round-trip is failed",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level name")

    @field_validator("mutation_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept any standard level name, in any case."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError("unknown log level")
        return level


def _env_name(field: str) -> str:
    alias = Settings.model_fields[field].validation_alias
    return alias if isinstance(alias, str) else field.upper()


# Lower-cased field names and aliases, as they appear in error locations
_ENV_NAMES = {
    key.lower(): _env_name(field)
    for field in Settings.model_fields
    for key in (field, _env_name(field))
}


def load_settings() -> Settings:
    """Build settings from environment variables, falling back to defaults.

    Raises:
        ConfigurationError: If a variable holds a value that does not validate.
    """
    try:
        return Settings()
    except ValidationError as e:
        error = e.errors()[0]
        loc = str(error["loc"][0]) if error["loc"] else ""
        name = _ENV_NAMES.get(loc.lower(), loc)
        value = os.environ.get(name, str(error.get("input")))
        raise ConfigurationError(name, value, error["msg"]) from None


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
