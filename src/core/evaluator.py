"""End-of-day evaluation — pure business logic.

Decides, for one group and one simulated day, whether the quorum met the
target, updates the streak, and tears down members who failed too many
days in a row.

No file I/O: persistence is the caller's job.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.data.models import Group, User
    from src.data.store import AccountStore
    from src.ports.activity_log_port import ActivityLogPort

logger = logging.getLogger(__name__)

DEFAULT_QUORUM_RATIO = 0.75
DEFAULT_MAX_FAILURES = 3


@dataclass
class EvaluationResult:
    """Outcome of one group's end-of-day evaluation."""

    group_name: str
    met: int
    total: int
    required: int
    streak: int
    removed: list[str] = field(default_factory=list)

    @property
    def quorum_met(self) -> bool:
        return self.met >= self.required


def required_for_quorum(total: int, ratio: float = DEFAULT_QUORUM_RATIO) -> int:
    """Members needed to keep the streak, e.g. 4 members at 0.75 → 3."""
    return math.ceil(ratio * total)


def evaluate_group(
    users: AccountStore,
    group: Group,
    today: date,
    activity_log: ActivityLogPort,
    quorum_ratio: float = DEFAULT_QUORUM_RATIO,
    max_failures: int = DEFAULT_MAX_FAILURES,
) -> EvaluationResult | None:
    """Evaluate ``group`` for ``today`` and apply streak and removal updates.

    A member meets the day when their status exists, they logged today and
    their hours reach the group target. Every member who missed gets one
    more consecutive failure here, on top of any bump applied when they
    logged. Removals are collected during the pass and applied afterwards,
    so the roster is never mutated while it is being walked.

    Returns None for a group without members.
    """
    roster = list(group.members)
    total = len(roster)
    if total == 0:
        return None

    met = 0
    to_remove: list[str] = []
    for username in roster:
        user = users.find(username)
        if user is None:
            logger.warning(
                "Member %s of %s has no account; removing", username, group.group_name,
            )
            to_remove.append(username)
            continue

        status = user.group_statuses.get(group.group_name)
        met_today = (
            status is not None
            and status.has_logged_today
            and status.today_hours >= group.target_hours
        )
        if met_today:
            met += 1
        if status is None:
            continue

        if not met_today:
            status.record_failure()
        if status.consecutive_failures >= max_failures:
            to_remove.append(username)
            activity_log.log(
                group.group_name,
                f"Auto-removed user {username} after "
                f"{status.consecutive_failures} consecutive failures.",
                today,
            )

    required = required_for_quorum(total, quorum_ratio)
    if met >= required:
        group.streak_count += 1
        activity_log.log(
            group.group_name,
            f"Streak incremented to {group.streak_count} (met {met}/{total})",
            today,
        )
    else:
        group.streak_count = 0
        activity_log.log(
            group.group_name,
            f"Streak broken. Met {met}/{total} (required {required})",
            today,
        )

    for username in to_remove:
        _teardown_membership(username, users.find(username), group)

    group.last_evaluated_date = today
    logger.info(
        "Evaluated %s for %s: met %d/%d, streak %d, removed %s",
        group.group_name, today, met, total, group.streak_count, to_remove or "none",
    )
    return EvaluationResult(
        group_name=group.group_name,
        met=met,
        total=total,
        required=required,
        streak=group.streak_count,
        removed=to_remove,
    )


def _teardown_membership(username: str, user: User | None, group: Group) -> None:
    """Drop the roster entry and the user's status together."""
    group.remove_member(username)
    if user is not None:
        user.leave_group(group.group_name)


def reset_day(users: Iterable[User], groups: Iterable[Group], today: date) -> None:
    """Clear per-day state ahead of ``today``.

    Leaderboard maps are emptied and any status whose last log is older
    than ``today`` loses its logged flag and hours.
    """
    for group in groups:
        group.reset_today_map()
    for user in users:
        user.reset_daily_flags(today)
