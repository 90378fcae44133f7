"""
Study Streak — UI-Agnostic Streak Service.

Service layer that orchestrates all business logic: accounts, group
membership, daily logging and the end-of-day job. The interactive layer
passes an already-authenticated actor and parsed arguments, and renders
the returned objects (or the raised StreakError) in its own way.

Every mutating operation writes an activity-log line and saves the
snapshots before returning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING

from src.core.errors import ErrorKind, StreakError
from src.core.evaluator import EvaluationResult, evaluate_group, reset_day
from src.core.security import hash_password, verify_password
from src.data.models import Group, User, UserGroupStatus

if TYPE_CHECKING:
    from src.core.clock import SimulatedClock
    from src.data.snapshot_store import SnapshotStore
    from src.data.store import AccountStore, GroupRegistry
    from src.ports.activity_log_port import ActivityLogPort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


@dataclass
class Dashboard:
    group_name: str
    admin_username: str
    streak_count: int
    target_hours: int
    members: list[str]
    leaderboard: list[tuple[str, int]]
    join_requests: list[str]


@dataclass
class EndOfDayReport:
    evaluated_date: date
    new_date: date
    results: list[EvaluationResult] = field(default_factory=list)
    failed_groups: list[str] = field(default_factory=list)
    saved: bool = False


# ---------------------------------------------------------------------------
# StreakService
# ---------------------------------------------------------------------------


class StreakService:
    """Orchestrates accounts, groups, logging and the daily evaluation."""

    def __init__(
        self,
        accounts: AccountStore,
        groups: GroupRegistry,
        clock: SimulatedClock,
        activity_log: ActivityLogPort,
        store: SnapshotStore | None = None,
        quorum_ratio: float | None = None,
        max_failures: int | None = None,
        max_hours_per_day: int | None = None,
    ) -> None:
        if quorum_ratio is None or max_failures is None or max_hours_per_day is None:
            from src.config import settings
            if quorum_ratio is None:
                quorum_ratio = settings.QUORUM_RATIO
            if max_failures is None:
                max_failures = settings.MAX_FAILURES
            if max_hours_per_day is None:
                max_hours_per_day = settings.MAX_HOURS_PER_DAY

        self._accounts = accounts
        self._groups = groups
        self._clock = clock
        self._activity_log = activity_log
        self._store = store
        self._quorum_ratio = quorum_ratio
        self._max_failures = max_failures
        self._max_hours = max_hours_per_day

    @classmethod
    def from_store(
        cls,
        store: SnapshotStore,
        clock: SimulatedClock,
        activity_log: ActivityLogPort,
        **kwargs,
    ) -> StreakService:
        """Build a service over whatever the snapshots currently hold.

        The clock is moved past the latest day any group was evaluated, so
        a restart never closes out the same day twice.
        """
        accounts, groups = store.load_all()
        evaluated = [g.last_evaluated_date for g in groups.list() if g.last_evaluated_date]
        if evaluated:
            clock.catch_up(max(evaluated) + timedelta(days=1))
        return cls(accounts, groups, clock, activity_log, store=store, **kwargs)

    @property
    def accounts(self) -> AccountStore:
        return self._accounts

    @property
    def groups(self) -> GroupRegistry:
        return self._groups

    @property
    def today(self) -> date:
        return self._clock.today

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def register(self, username: str, password: str) -> User:
        user = self._accounts.create(User(username, hash_password(password)))
        self._activity_log.log_global(f"User registered: {username}", self.today)
        self.save()
        return user

    def login(self, username: str, password: str) -> User:
        user = self._accounts.find(username)
        if user is None:
            raise StreakError(ErrorKind.INVALID_CREDENTIAL, "User not found.")
        if not verify_password(password, user.password_hash):
            raise StreakError(ErrorKind.INVALID_CREDENTIAL, "Invalid password.")
        return user

    def logout(self, actor: User) -> None:
        self.save()
        self._activity_log.log_global(f"User logged out: {actor.username}", self.today)

    # ------------------------------------------------------------------
    # Groups & membership
    # ------------------------------------------------------------------

    def create_group(self, actor: User, group_name: str, target_hours: int) -> Group:
        if not isinstance(target_hours, int) or isinstance(target_hours, bool) \
                or target_hours < 0:
            raise StreakError(
                ErrorKind.INVALID_HOURS,
                f"Target hours must be a whole number >= 0, got {target_hours!r}",
            )
        group = self._groups.create(Group(group_name, actor.username, target_hours))
        group.add_member(actor.username)
        actor.join_group_direct(group_name)
        actor.set_admin_for(group_name, True)
        self._activity_log.log(
            group_name,
            f"Group created by {actor.username} with target hours: {target_hours}",
            self.today,
        )
        self.save()
        return group

    def request_join(self, actor: User, group_name: str) -> None:
        group = self._groups.get(group_name)
        group.request_join(actor.username)
        self._activity_log.log(group_name, f"Join request: {actor.username}", self.today)
        self.save()

    def list_requests(self, actor: User, group_name: str) -> list[str]:
        group = self._require_admin(actor, group_name)
        return list(group.join_requests)

    def approve(self, actor: User, group_name: str, username: str) -> None:
        group = self._require_admin(actor, group_name)
        group.approve(username)
        candidate = self._accounts.find(username)
        if candidate is not None:
            candidate.join_group_direct(group_name)
        else:
            logger.warning("Approved %s into %s but no such account exists", username, group_name)
        self._activity_log.log(
            group_name, f"Admin {actor.username} approved {username}", self.today,
        )
        self.save()

    def reject(self, actor: User, group_name: str, username: str) -> None:
        group = self._require_admin(actor, group_name)
        group.reject(username)
        self._activity_log.log(
            group_name, f"Admin {actor.username} rejected {username}", self.today,
        )
        self.save()

    def leave_group(self, actor: User, group_name: str) -> None:
        group = self._groups.get(group_name)
        if not actor.is_member_of(group_name):
            raise StreakError(
                ErrorKind.NOT_MEMBER, f"{actor.username} is not a member of {group_name}"
            )
        if group.admin_username == actor.username:
            raise StreakError(ErrorKind.ADMIN_LOCKED, "The group admin cannot leave the group")
        group.remove_member(actor.username)
        actor.leave_group(group_name)
        self._activity_log.log(group_name, f"{actor.username} left the group", self.today)
        self.save()

    def remove_member(self, actor: User, group_name: str, username: str) -> None:
        group = self._require_admin(actor, group_name)
        if username == actor.username:
            raise StreakError(ErrorKind.ADMIN_LOCKED, "The group admin cannot remove themself")
        if username not in group.members:
            raise StreakError(ErrorKind.NOT_MEMBER, f"{username} is not a member of {group_name}")
        group.remove_member(username)
        member = self._accounts.find(username)
        if member is not None:
            member.leave_group(group_name)
        self._activity_log.log(
            group_name, f"Admin {actor.username} removed {username}", self.today,
        )
        self.save()

    def _require_admin(self, actor: User, group_name: str) -> Group:
        group = self._groups.get(group_name)
        if group.admin_username != actor.username:
            raise StreakError(ErrorKind.NOT_ADMIN, "Only the group admin can manage this group")
        return group

    # ------------------------------------------------------------------
    # Daily logging
    # ------------------------------------------------------------------

    def log_hours(self, actor: User, group_name: str, hours: int) -> UserGroupStatus:
        """Record today's study hours for ``actor`` in ``group_name``.

        Failures are adjusted immediately: below target bumps the counter,
        at or above target clears it. The end-of-day evaluation may bump
        it again for the same day.
        """
        group = self._groups.get(group_name)
        status = actor.group_statuses.get(group_name)
        if status is None:
            raise StreakError(ErrorKind.NOT_MEMBER, "You are not a member of this group")
        if not isinstance(hours, int) or isinstance(hours, bool) \
                or not 0 <= hours <= self._max_hours:
            raise StreakError(
                ErrorKind.INVALID_HOURS,
                f"Hours must be a whole number between 0 and {self._max_hours}",
            )
        today = self.today
        if status.has_logged_on(today):
            raise StreakError(
                ErrorKind.ALREADY_LOGGED_TODAY,
                "You have already logged today for this group.",
            )

        status.today_hours = hours
        status.has_logged_today = True
        status.last_log_date = today
        if hours < group.target_hours:
            status.record_failure()
        else:
            status.clear_failures()

        group.update_today_study(actor.username, hours)
        self._activity_log.log(
            group_name, f"{actor.username} logged {hours} hours today.", today,
        )
        self.save()
        return status

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def dashboard(self, group_name: str) -> Dashboard:
        group = self._groups.get(group_name)
        return Dashboard(
            group_name=group.group_name,
            admin_username=group.admin_username,
            streak_count=group.streak_count,
            target_hours=group.target_hours,
            members=list(group.members),
            leaderboard=group.leaderboard(),
            join_requests=list(group.join_requests),
        )

    def statuses(self, actor: User) -> list[UserGroupStatus]:
        return list(actor.group_statuses.values())

    # ------------------------------------------------------------------
    # End of day
    # ------------------------------------------------------------------

    def end_of_day(self) -> EndOfDayReport:
        """Evaluate every group for today, then move to the next day.

        Groups are evaluated against the current date before any daily
        flag is cleared. A group whose evaluation raises is logged and
        skipped; the day still advances.
        """
        evaluated = self.today
        logger.info("Simulating end-of-day for %s across %d groups", evaluated, len(self._groups))

        report = EndOfDayReport(evaluated_date=evaluated, new_date=evaluated)
        for group in self._groups.list():
            try:
                result = evaluate_group(
                    self._accounts,
                    group,
                    evaluated,
                    self._activity_log,
                    quorum_ratio=self._quorum_ratio,
                    max_failures=self._max_failures,
                )
            except Exception as exc:
                logger.error("Error evaluating group %s: %s", group.group_name, exc)
                report.failed_groups.append(group.group_name)
                continue
            if result is not None:
                report.results.append(result)

        report.new_date = self._clock.advance()
        reset_day(self._accounts.list(), self._groups.list(), report.new_date)
        report.saved = self.save()
        return report

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        if self._store is None:
            return True
        return self._store.save_all(self._accounts, self._groups)
