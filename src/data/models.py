"""
Study Streak — Data Models.

Users, groups and the per-user-per-group status that links them.
A user's ``group_statuses`` holds an entry exactly while the user is on that
group's roster; the group's ``today_study_map`` is derived from those
statuses and is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from src.core.errors import ErrorKind, StreakError


@dataclass
class UserGroupStatus:
    """One user's standing inside one group."""

    group_name: str
    today_hours: int = 0
    has_logged_today: bool = False
    consecutive_failures: int = 0
    last_log_date: date | None = None

    def has_logged_on(self, today: date) -> bool:
        return self.last_log_date is not None and self.last_log_date == today

    def record_failure(self) -> None:
        self.consecutive_failures += 1

    def clear_failures(self) -> None:
        self.consecutive_failures = 0


@dataclass
class User:
    """A registered account and its group memberships."""

    username: str
    password_hash: str
    group_admin_map: dict[str, bool] = field(default_factory=dict)
    group_statuses: dict[str, UserGroupStatus] = field(default_factory=dict)

    def is_member_of(self, group_name: str) -> bool:
        return group_name in self.group_statuses

    def is_admin_for(self, group_name: str) -> bool:
        return self.group_admin_map.get(group_name, False)

    def set_admin_for(self, group_name: str, is_admin: bool = True) -> None:
        self.group_admin_map[group_name] = is_admin

    def join_group_direct(self, group_name: str) -> UserGroupStatus:
        """Create the status for ``group_name`` unless one already exists."""
        if group_name not in self.group_statuses:
            self.group_statuses[group_name] = UserGroupStatus(group_name)
        return self.group_statuses[group_name]

    def leave_group(self, group_name: str) -> None:
        self.group_admin_map.pop(group_name, None)
        self.group_statuses.pop(group_name, None)

    def reset_daily_flags(self, today: date) -> None:
        """Clear today's flag and hours on every status not logged on ``today``.

        ``consecutive_failures`` is left alone.
        """
        for status in self.group_statuses.values():
            if status.last_log_date is None or status.last_log_date < today:
                status.has_logged_today = False
                status.today_hours = 0


@dataclass
class Group:
    """A study group: roster, pending requests and streak state."""

    group_name: str
    admin_username: str
    target_hours: int
    streak_count: int = 0
    members: list[str] = field(default_factory=list)
    join_requests: list[str] = field(default_factory=list)
    last_evaluated_date: date | None = None
    # Derived from member statuses; rebuilt empty on load and on daily reset
    today_study_map: dict[str, int] = field(
        default_factory=dict, compare=False, repr=False,
    )

    # -- roster & request queue ------------------------------------------

    def add_member(self, username: str) -> None:
        if username not in self.members:
            self.members.append(username)

    def remove_member(self, username: str) -> None:
        if username in self.members:
            self.members.remove(username)
        self.today_study_map.pop(username, None)

    def request_join(self, username: str) -> None:
        if username in self.join_requests:
            raise StreakError(
                ErrorKind.DUPLICATE_REQUEST,
                f"{username} already requested to join {self.group_name}",
            )
        if username in self.members:
            raise StreakError(
                ErrorKind.ALREADY_MEMBER,
                f"{username} is already a member of {self.group_name}",
            )
        self.join_requests.append(username)

    def approve(self, username: str) -> None:
        if username in self.join_requests:
            self.join_requests.remove(username)
        self.add_member(username)

    def reject(self, username: str) -> None:
        if username in self.join_requests:
            self.join_requests.remove(username)

    # -- leaderboard -----------------------------------------------------

    def update_today_study(self, username: str, hours: int) -> None:
        """Record today's hours and re-sort the roster, most hours first.

        ``list.sort`` is stable, so ties keep their previous order.
        """
        self.today_study_map[username] = hours
        self.members.sort(key=lambda m: self.today_study_map.get(m, 0), reverse=True)

    def leaderboard(self) -> list[tuple[str, int]]:
        ranked = sorted(
            self.members,
            key=lambda m: self.today_study_map.get(m, 0),
            reverse=True,
        )
        return [(m, self.today_study_map.get(m, 0)) for m in ranked]

    def reset_today_map(self) -> None:
        self.today_study_map.clear()
