"""Per-task editing locks.

At most one lock exists per task.  The holder's ``User.editing`` mirrors the
lock so the roster can show who is editing what.  Callers are expected to
hold the coordinator lock; nothing here awaits or blocks.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

from loguru import logger

from ..constants import LOCK_TIMEOUT_SECONDS
from .models import BoardState, EditingLock, LockType


class LockManager:
    def __init__(self, state: BoardState, clock: Callable[[], float] = time.monotonic) -> None:
        self._state = state
        self._clock = clock

    def holder(self, task_id: str) -> Optional[str]:
        lock = self._state.locks.get(task_id)
        return lock.user_id if lock else None

    def get(self, task_id: str) -> Optional[EditingLock]:
        return self._state.locks.get(task_id)

    def acquire(self, user_id: str, task_id: str, lock_type: LockType | str = LockType.EDIT) -> bool:
        """Take the lock on *task_id* for *user_id*.

        Re-acquiring a lock the user already holds refreshes its timestamp
        and type.  A lock held by someone else is left untouched and False
        is returned.
        """
        lock_type = LockType(lock_type)
        existing = self._state.locks.get(task_id)
        if existing is not None and existing.user_id != user_id:
            logger.debug("Lock on {} refused for {} (held by {})", task_id, user_id, existing.user_id)
            return False

        if existing is not None:
            existing.timestamp = self._clock()
            existing.type = lock_type
        else:
            self._state.locks[task_id] = EditingLock(
                task_id=task_id,
                user_id=user_id,
                timestamp=self._clock(),
                type=lock_type,
            )

        user = self._state.users.get(user_id)
        if user is not None:
            user.editing = task_id
        return True

    def release(self, task_id: str) -> Optional[EditingLock]:
        lock = self._state.locks.pop(task_id, None)
        if lock is None:
            return None
        user = self._state.users.get(lock.user_id)
        if user is not None and user.editing == task_id:
            user.editing = None
        return lock

    def release_all_for(self, user_id: str) -> list[EditingLock]:
        owned = [task_id for task_id, lock in self._state.locks.items() if lock.user_id == user_id]
        return [lock for lock in (self.release(task_id) for task_id in owned) if lock is not None]

    def sweep(self, now: Optional[float] = None, timeout: float = LOCK_TIMEOUT_SECONDS) -> list[EditingLock]:
        """Force-release every lock at least *timeout* seconds old."""
        now = self._clock() if now is None else now
        expired = [task_id for task_id, lock in self._state.locks.items() if now - lock.timestamp >= timeout]
        released: list[EditingLock] = []
        for task_id in expired:
            lock = self.release(task_id)
            if lock is not None:
                released.append(lock)
                logger.info("Expired lock on {} held by {} ({})", task_id, lock.user_id, lock.type.value)
        return released

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {task_id: lock.to_dict() for task_id, lock in self._state.locks.items()}
