"""
Study Streak — Entry Point.

`python main.py` loads the snapshots, closes out the current simulated day
for every group, advances the date and saves. Run it once per day.
"""

import logging

from src.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.adapters.file_activity_log import FileActivityLog
from src.core.clock import SimulatedClock
from src.core.streak_service import StreakService
from src.data.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def main() -> None:
    service = StreakService.from_store(SnapshotStore(), SimulatedClock(), FileActivityLog())
    report = service.end_of_day()
    for result in report.results:
        logger.info(
            "%s: met %d/%d (required %d), streak %d",
            result.group_name, result.met, result.total, result.required, result.streak,
        )
    if not report.saved:
        logger.error("End-of-day state could not be fully saved")


if __name__ == "__main__":
    main()
