"""
Study Streak — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Durable snapshots (one record for users, one for groups)
    USERS_PATH: str = "data/users.json"
    GROUPS_PATH: str = "data/groups.json"

    # Append-only human-readable audit trail
    ACTIVITY_LOG_PATH: str = "data/activity_log.txt"

    # First simulated day; empty → today
    START_DATE: date | None = None

    # Evaluation rules
    QUORUM_RATIO: float = 0.75
    MAX_FAILURES: int = 3
    MAX_HOURS_PER_DAY: int = 24

    LOG_LEVEL: str = "INFO"

    @field_validator("START_DATE", mode="before")
    @classmethod
    def parse_start_date(cls, v: str | date | None) -> date | None:
        if isinstance(v, str):
            v = v.strip()
            return date.fromisoformat(v) if v else None
        return v

    @field_validator("QUORUM_RATIO", mode="before")
    @classmethod
    def parse_ratio(cls, v: str | float) -> float:
        ratio = float(v)
        if not 0 < ratio <= 1:
            raise ValueError(f"QUORUM_RATIO must be in (0, 1], got {ratio}")
        return ratio

    @field_validator("MAX_FAILURES", "MAX_HOURS_PER_DAY", mode="before")
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError(f"expected a positive integer, got {value}")
        return value


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        USERS_PATH=os.getenv("USERS_PATH", "data/users.json"),
        GROUPS_PATH=os.getenv("GROUPS_PATH", "data/groups.json"),
        ACTIVITY_LOG_PATH=os.getenv("ACTIVITY_LOG_PATH", "data/activity_log.txt"),
        START_DATE=os.getenv("START_DATE", ""),
        QUORUM_RATIO=os.getenv("QUORUM_RATIO", "0.75"),
        MAX_FAILURES=os.getenv("MAX_FAILURES", "3"),
        MAX_HOURS_PER_DAY=os.getenv("MAX_HOURS_PER_DAY", "24"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
