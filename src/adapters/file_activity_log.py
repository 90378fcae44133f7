"""File activity log adapter — implements ActivityLogPort.

Appends one line per event to a text file:
    [2026-02-08] [math-club] alice logged 3 hours today.
    [2026-02-08] [GLOBAL] User registered: alice
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

GLOBAL_TAG = "GLOBAL"


class FileActivityLog:
    """Append-only text file implementation of ActivityLogPort."""

    def __init__(self, path: str | None = None) -> None:
        if path is None:
            from src.config import settings
            path = settings.ACTIVITY_LOG_PATH

        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def log(self, group_name: str, message: str, today: date) -> None:
        self._append(f"[{today.isoformat()}] [{group_name}] {message}")

    def log_global(self, message: str, today: date) -> None:
        self._append(f"[{today.isoformat()}] [{GLOBAL_TAG}] {message}")

    def _append(self, line: str) -> None:
        with self._lock:
            try:
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as exc:
                logger.error("Failed to write activity log %s: %s", self._path, exc)
