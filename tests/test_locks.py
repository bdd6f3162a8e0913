"""Tests for per-task editing locks and their sweep."""

from __future__ import annotations

import pytest

from collab_board.coordination.locks import LockManager
from collab_board.coordination.models import Avatar, BoardState, LockType, User


@pytest.fixture
def state() -> BoardState:
    s = BoardState()
    for uid in ("alice", "bob"):
        s.users[uid] = User(id=uid, name=uid, avatar=Avatar("#FF6B6B", "circle"))
    return s


@pytest.fixture
def locks(state, clock) -> LockManager:
    return LockManager(state, clock)


class TestAcquireRelease:
    def test_acquire_free_lock(self, locks, state) -> None:
        assert locks.acquire("alice", "t1", "edit") is True
        assert locks.holder("t1") == "alice"
        assert state.users["alice"].editing == "t1"
        assert locks.get("t1").type == LockType.EDIT

    def test_mutual_exclusion(self, locks, state) -> None:
        assert locks.acquire("alice", "t1", "edit") is True
        assert locks.acquire("bob", "t1", "edit") is False
        assert locks.holder("t1") == "alice"
        assert state.users["bob"].editing is None

    def test_release_then_other_user_succeeds(self, locks) -> None:
        locks.acquire("alice", "t1", "edit")
        locks.release("t1")
        assert locks.acquire("bob", "t1", "edit") is True
        assert locks.holder("t1") == "bob"

    def test_reentrant_refreshes_timestamp_and_type(self, locks, clock) -> None:
        locks.acquire("alice", "t1", "edit")
        clock.advance(100)
        assert locks.acquire("alice", "t1", "move") is True
        lock = locks.get("t1")
        assert lock.timestamp == clock.now
        assert lock.type == LockType.MOVE

    def test_release_clears_editing(self, locks, state) -> None:
        locks.acquire("alice", "t1", "edit")
        released = locks.release("t1")
        assert released is not None and released.user_id == "alice"
        assert state.users["alice"].editing is None

    def test_release_keeps_editing_pointing_elsewhere(self, locks, state) -> None:
        locks.acquire("alice", "t1", "edit")
        locks.acquire("alice", "t2", "edit")
        locks.release("t1")
        assert state.users["alice"].editing == "t2"

    def test_release_missing_is_noop(self, locks) -> None:
        assert locks.release("nothing") is None

    def test_release_all_for(self, locks) -> None:
        locks.acquire("alice", "t1", "edit")
        locks.acquire("alice", "t2", "move")
        locks.acquire("bob", "t3", "edit")
        released = locks.release_all_for("alice")
        assert sorted(lock.task_id for lock in released) == ["t1", "t2"]
        assert locks.snapshot().keys() == {"t3"}

    def test_snapshot_wire_form(self, locks) -> None:
        locks.acquire("alice", "t1", "drag")
        snap = locks.snapshot()
        assert snap["t1"]["userId"] == "alice"
        assert snap["t1"]["type"] == "drag"
        assert snap["t1"]["timestamp"]


class TestSweep:
    def test_young_lock_kept(self, locks, clock) -> None:
        locks.acquire("alice", "t1", "edit")
        clock.advance(299)
        assert locks.sweep(timeout=300) == []
        assert locks.holder("t1") == "alice"

    def test_lock_at_timeout_released(self, locks, clock, state) -> None:
        locks.acquire("alice", "t1", "edit")
        clock.advance(300)
        released = locks.sweep(timeout=300)
        assert [lock.task_id for lock in released] == ["t1"]
        assert locks.holder("t1") is None
        assert state.users["alice"].editing is None

    def test_explicit_now(self, locks, clock) -> None:
        locks.acquire("alice", "t1", "edit")
        locks.acquire("bob", "t2", "edit")
        clock.advance(200)
        locks.acquire("alice", "t1", "edit")  # refresh
        released = locks.sweep(now=clock.now + 150, timeout=300)
        assert [lock.task_id for lock in released] == ["t2"]
        assert locks.holder("t1") == "alice"
