"""Shared test fixtures and configuration.

Sets up environment variables before any src import and provides common
fixtures: temp snapshot paths, a fixed simulated clock and a service wired
to a mocked activity log.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("USERS_PATH", "data/test_users.json")
os.environ.setdefault("GROUPS_PATH", "data/test_groups.json")
os.environ.setdefault("ACTIVITY_LOG_PATH", "data/test_activity_log.txt")
os.environ.setdefault("START_DATE", "2026-02-08")
os.environ.setdefault("QUORUM_RATIO", "0.75")
os.environ.setdefault("MAX_FAILURES", "3")

import pytest
from datetime import date
from unittest.mock import MagicMock

START = date(2026, 2, 8)


@pytest.fixture
def snapshot_store(tmp_path):
    """Return a SnapshotStore writing into a temp directory."""
    from src.data.snapshot_store import SnapshotStore
    return SnapshotStore(
        users_path=str(tmp_path / "users.json"),
        groups_path=str(tmp_path / "groups.json"),
    )


@pytest.fixture
def clock():
    from src.core.clock import SimulatedClock
    return SimulatedClock(START)


@pytest.fixture
def activity_log():
    """A mock ActivityLogPort; assert on .log / .log_global calls."""
    return MagicMock()


@pytest.fixture
def accounts():
    from src.data.store import AccountStore
    return AccountStore()


@pytest.fixture
def groups():
    from src.data.store import GroupRegistry
    return GroupRegistry()


@pytest.fixture
def service(accounts, groups, clock, activity_log, snapshot_store):
    """A StreakService with empty state that saves into temp files."""
    from src.core.streak_service import StreakService
    return StreakService(
        accounts, groups, clock, activity_log,
        store=snapshot_store, quorum_ratio=0.75, max_failures=3, max_hours_per_day=24,
    )


@pytest.fixture
def make_group(service):
    """Create an admin plus members in a new group, all approved.

    Returns (group, {username: User}).
    """
    def _make(name="math-club", target=2, members=("bob", "carol", "dave")):
        admin = service.register("alice", "pw-alice")
        users = {"alice": admin}
        group = service.create_group(admin, name, target)
        for username in members:
            user = service.register(username, f"pw-{username}")
            service.request_join(user, name)
            service.approve(admin, name, username)
            users[username] = user
        return group, users
    return _make
