"""
Study Streak — Snapshot persistence.

Users and groups live in two JSON records that are replaced wholesale on
every save. Each record is written to a sibling ``.tmp`` file first and then
swapped in with ``os.replace``, so an interrupted save never damages the
previous record. A missing record loads as empty; a corrupt one is logged
and also loads as empty.
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from src.core.errors import PersistenceError
from src.data.models import Group, User, UserGroupStatus
from src.data.store import AccountStore, GroupRegistry

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


# ---------------------------------------------------------------------------
# On-disk record shapes
# ---------------------------------------------------------------------------

class StatusRecord(BaseModel):
    group_name: str
    today_hours: int = Field(default=0, ge=0)
    has_logged_today: bool = False
    consecutive_failures: int = Field(default=0, ge=0)
    last_log_date: date | None = None


class UserRecord(BaseModel):
    """JSON example:
    {
        "username": "alice",
        "password_hash": "2bd806c9...",
        "group_admin_map": {"math-club": true},
        "group_statuses": {"math-club": {"group_name": "math-club", ...}}
    }
    """
    username: str
    password_hash: str
    group_admin_map: dict[str, bool] = {}
    group_statuses: dict[str, StatusRecord] = {}


class GroupRecord(BaseModel):
    group_name: str
    admin_username: str
    target_hours: int = Field(ge=0)
    streak_count: int = Field(default=0, ge=0)
    members: list[str] = []
    join_requests: list[str] = []
    last_evaluated_date: date | None = None

    @model_validator(mode="after")
    def check_roster(self) -> GroupRecord:
        if len(set(self.members)) != len(self.members):
            raise ValueError(f"duplicate members in {self.group_name}")
        if len(set(self.join_requests)) != len(self.join_requests):
            raise ValueError(f"duplicate join requests in {self.group_name}")
        overlap = set(self.members) & set(self.join_requests)
        if overlap:
            raise ValueError(
                f"{sorted(overlap)} both members and pending in {self.group_name}"
            )
        return self


class Snapshot(BaseModel):
    version: int = SNAPSHOT_VERSION
    items: list[dict]


# ---------------------------------------------------------------------------
# Model <-> record conversion
# ---------------------------------------------------------------------------

def _user_to_record(user: User) -> UserRecord:
    return UserRecord(
        username=user.username,
        password_hash=user.password_hash,
        group_admin_map=dict(user.group_admin_map),
        group_statuses={
            name: StatusRecord(
                group_name=s.group_name,
                today_hours=s.today_hours,
                has_logged_today=s.has_logged_today,
                consecutive_failures=s.consecutive_failures,
                last_log_date=s.last_log_date,
            )
            for name, s in user.group_statuses.items()
        },
    )


def _record_to_user(record: UserRecord) -> User:
    return User(
        username=record.username,
        password_hash=record.password_hash,
        group_admin_map=dict(record.group_admin_map),
        group_statuses={
            name: UserGroupStatus(**s.model_dump())
            for name, s in record.group_statuses.items()
        },
    )


def _group_to_record(group: Group) -> GroupRecord:
    # today_study_map is derived, never persisted
    return GroupRecord(
        group_name=group.group_name,
        admin_username=group.admin_username,
        target_hours=group.target_hours,
        streak_count=group.streak_count,
        members=list(group.members),
        join_requests=list(group.join_requests),
        last_evaluated_date=group.last_evaluated_date,
    )


def _record_to_group(record: GroupRecord) -> Group:
    return Group(**record.model_dump())


# ---------------------------------------------------------------------------
# SnapshotStore
# ---------------------------------------------------------------------------

class SnapshotStore:
    """Loads and saves the user and group records."""

    def __init__(
        self, users_path: str | None = None, groups_path: str | None = None,
    ) -> None:
        if users_path is None or groups_path is None:
            from src.config import settings
            users_path = users_path or settings.USERS_PATH
            groups_path = groups_path or settings.GROUPS_PATH

        self._users_path = Path(users_path)
        self._groups_path = Path(groups_path)

    @property
    def users_path(self) -> Path:
        return self._users_path

    @property
    def groups_path(self) -> Path:
        return self._groups_path

    # -- save --------------------------------------------------------------

    def save_all(self, accounts: AccountStore, groups: GroupRegistry) -> bool:
        """Write both records. Returns True only if both were replaced.

        A failure on one record is logged and does not stop the other.
        """
        users_ok = self._save_record(
            self._users_path,
            [_user_to_record(u).model_dump(mode="json") for u in accounts.list()],
            "users",
        )
        groups_ok = self._save_record(
            self._groups_path,
            [_group_to_record(g).model_dump(mode="json") for g in groups.list()],
            "groups",
        )
        return users_ok and groups_ok

    def _save_record(self, path: Path, items: list[dict], label: str) -> bool:
        try:
            write_atomic(path, Snapshot(items=items).model_dump_json(indent=2))
        except PersistenceError as exc:
            logger.error("Failed to save %s: %s", label, exc)
            return False
        logger.info("Saved %d %s to %s", len(items), label, path)
        return True

    # -- load --------------------------------------------------------------

    def load_all(self) -> tuple[AccountStore, GroupRegistry]:
        """Read both records. Never raises for missing or corrupt files."""
        user_records = self._load_record(self._users_path, UserRecord, "users")
        group_records = self._load_record(self._groups_path, GroupRecord, "groups")

        accounts = AccountStore(_record_to_user(r) for r in user_records)
        groups = GroupRegistry(_record_to_group(r) for r in group_records)
        for group in groups.list():
            group.reset_today_map()

        logger.info("Loaded %d users and %d groups from disk", len(accounts), len(groups))
        return accounts, groups

    def _load_record(self, path: Path, model: type[BaseModel], label: str) -> list:
        if not path.exists():
            logger.info("No %s record at %s; starting empty", label, path)
            return []
        try:
            raw = path.read_text(encoding="utf-8")
            snapshot = Snapshot.model_validate_json(raw)
            return [model.model_validate(item) for item in snapshot.items]
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.error("Failed to load %s from %s: %s", label, path, exc)
            return []


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file and an atomic replace.

    Falls back to a plain copy if the platform refuses the replace.
    Raises PersistenceError when the record could not be updated; the
    previous file is then still intact.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
    except OSError as exc:
        raise PersistenceError(f"could not write temp file {tmp_path}: {exc}") from exc

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        logger.warning("Atomic replace of %s failed (%s); copying instead", path, exc)
        try:
            shutil.copyfile(tmp_path, path)
            tmp_path.unlink(missing_ok=True)
        except OSError as copy_exc:
            raise PersistenceError(
                f"could not move {tmp_path} to {path}: {copy_exc}"
            ) from copy_exc
