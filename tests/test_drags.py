"""Tests for drag tracking and its coupling to editing locks."""

from __future__ import annotations

import pytest

from collab_board.coordination.drags import DragCoordinator
from collab_board.coordination.locks import LockManager
from collab_board.coordination.models import BoardState, ListName, LockType, Position


@pytest.fixture
def state() -> BoardState:
    return BoardState()


@pytest.fixture
def locks(state, clock) -> LockManager:
    return LockManager(state, clock)


@pytest.fixture
def drags(state, locks, clock) -> DragCoordinator:
    return DragCoordinator(state, locks, clock)


def _start(drags: DragCoordinator, user: str, task: str) -> bool:
    return drags.start(user, task, Position(10, 20), Position(1, 2), "todo")


class TestDragStart:
    def test_start_takes_drag_lock(self, drags, locks) -> None:
        assert _start(drags, "alice", "t1") is True
        lock = locks.get("t1")
        assert lock.user_id == "alice"
        assert lock.type == LockType.DRAG
        drag = drags.get("alice")
        assert drag.from_list == ListName.TODO
        assert drag.current_pos == Position(10, 20)

    def test_start_refused_when_locked_by_other(self, drags, locks) -> None:
        locks.acquire("bob", "t1", "edit")
        assert _start(drags, "alice", "t1") is False
        assert drags.get("alice") is None
        assert locks.holder("t1") == "bob"

    def test_edit_refused_while_dragging(self, drags, locks) -> None:
        _start(drags, "alice", "t1")
        assert locks.acquire("bob", "t1", "edit") is False

    def test_new_drag_replaces_prior(self, drags, locks) -> None:
        _start(drags, "alice", "t1")
        _start(drags, "alice", "t2")
        assert drags.get("alice").task_id == "t2"
        assert locks.holder("t1") is None
        assert locks.holder("t2") == "alice"


class TestDragUpdateEnd:
    def test_update_existing(self, drags, clock) -> None:
        _start(drags, "alice", "t1")
        clock.advance(5)
        drag = drags.update("alice", Position(50, 60))
        assert drag.current_pos == Position(50, 60)
        assert drag.refreshed_at == clock.now

    def test_update_without_drag_is_noop(self, drags) -> None:
        assert drags.update("nobody", Position(1, 1)) is None

    def test_end_returns_and_releases(self, drags, locks) -> None:
        _start(drags, "alice", "t1")
        drag = drags.end("alice")
        assert drag is not None and drag.task_id == "t1"
        assert drags.get("alice") is None
        assert locks.holder("t1") is None

    def test_end_without_drag(self, drags) -> None:
        assert drags.end("alice") is None

    def test_end_does_not_release_foreign_lock(self, drags, locks, clock) -> None:
        _start(drags, "alice", "t1")
        locks.release("t1")
        locks.acquire("bob", "t1", "edit")
        drags.end("alice")
        assert locks.holder("t1") == "bob"


class TestDragSweep:
    def test_stale_drag_ended_and_lock_released(self, drags, locks, clock) -> None:
        _start(drags, "alice", "t1")
        clock.advance(31)
        ended = drags.sweep(timeout=30)
        assert [d.user_id for d in ended] == ["alice"]
        assert drags.get("alice") is None
        assert locks.holder("t1") is None

    def test_young_drag_untouched(self, drags, locks, clock) -> None:
        _start(drags, "alice", "t1")
        clock.advance(29)
        assert drags.sweep(timeout=30) == []
        assert drags.get("alice") is not None
        assert locks.holder("t1") == "alice"

    def test_age_uses_time_not_coordinates(self, drags, clock) -> None:
        drags.start("alice", "t1", Position(999999, 0), Position(0, 0), "todo")
        assert drags.sweep(timeout=30) == []

    def test_updates_keep_drag_alive(self, drags, clock) -> None:
        _start(drags, "alice", "t1")
        for _ in range(4):
            clock.advance(20)
            drags.update("alice", Position(1, 1))
        assert drags.sweep(timeout=30) == []


class TestDragLockFreshness:
    def test_updates_keep_drag_lock_alive(self, drags, locks, clock) -> None:
        _start(drags, "alice", "t1")
        for _ in range(11):
            clock.advance(30)
            drags.update("alice", Position(1, 1))
            drags.sweep(timeout=30)
            locks.sweep(timeout=300)
        assert drags.get("alice") is not None
        assert locks.get("t1").type == LockType.DRAG
        assert locks.acquire("bob", "t1", "edit") is False

    def test_update_does_not_take_foreign_lock(self, drags, locks) -> None:
        _start(drags, "alice", "t1")
        locks.release("t1")
        locks.acquire("bob", "t1", "edit")
        drags.update("alice", Position(3, 3))
        assert locks.holder("t1") == "bob"
