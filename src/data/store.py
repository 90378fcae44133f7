"""
Study Streak — In-memory registries.

AccountStore holds users keyed by username, GroupRegistry holds groups
keyed by name. Both are plain lookup/insert containers; all rules live in
the service layer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.core.errors import ErrorKind, StreakError
from src.data.models import Group, User

logger = logging.getLogger(__name__)


class AccountStore:
    """All registered users."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[str, User] = {u.username: u for u in users}

    def create(self, user: User) -> User:
        if user.username in self._users:
            raise StreakError(
                ErrorKind.ALREADY_EXISTS, f"Username already exists: {user.username}"
            )
        self._users[user.username] = user
        logger.info("User registered: %s", user.username)
        return user

    def get(self, username: str) -> User:
        try:
            return self._users[username]
        except KeyError:
            raise StreakError(ErrorKind.NOT_FOUND, f"User not found: {username}") from None

    def find(self, username: str) -> User | None:
        return self._users.get(username)

    def list(self) -> list[User]:
        return list(self._users.values())

    def __contains__(self, username: object) -> bool:
        return username in self._users

    def __len__(self) -> int:
        return len(self._users)


class GroupRegistry:
    """All study groups."""

    def __init__(self, groups: Iterable[Group] = ()) -> None:
        self._groups: dict[str, Group] = {g.group_name: g for g in groups}

    def create(self, group: Group) -> Group:
        if group.group_name in self._groups:
            raise StreakError(
                ErrorKind.ALREADY_EXISTS, f"Group already exists: {group.group_name}"
            )
        self._groups[group.group_name] = group
        logger.info("Group created: %s (admin %s)", group.group_name, group.admin_username)
        return group

    def get(self, group_name: str) -> Group:
        try:
            return self._groups[group_name]
        except KeyError:
            raise StreakError(ErrorKind.NOT_FOUND, f"Group not found: {group_name}") from None

    def list(self) -> list[Group]:
        return list(self._groups.values())

    def __contains__(self, group_name: object) -> bool:
        return group_name in self._groups

    def __len__(self) -> int:
        return len(self._groups)
