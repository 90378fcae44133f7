"""Activity log port — abstract interface for the human-readable audit trail.

Core modules depend on this protocol, never on a specific sink.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol


class ActivityLogPort(Protocol):
    """Append-only sink tagged with the simulated date."""

    def log(self, group_name: str, message: str, today: date) -> None: ...

    def log_global(self, message: str, today: date) -> None: ...
