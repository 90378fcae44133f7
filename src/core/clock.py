"""Simulated clock — the single logical "today" of the system.

Time only moves when the end-of-day job calls ``advance``. Core functions
never read the clock themselves; they receive ``today`` as an argument.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

logger = logging.getLogger(__name__)


class SimulatedClock:
    def __init__(self, start: date | None = None) -> None:
        if start is None:
            from src.config import settings
            start = settings.START_DATE or date.today()
        self._today = start

    @property
    def today(self) -> date:
        return self._today

    def advance(self, days: int = 1) -> date:
        self._today += timedelta(days=days)
        logger.info("Simulated date advanced to %s", self._today)
        return self._today

    def catch_up(self, day: date) -> date:
        """Move forward to ``day`` if it is later than today; never go back."""
        if day > self._today:
            logger.info("Simulated date moved from %s to %s", self._today, day)
            self._today = day
        return self._today
