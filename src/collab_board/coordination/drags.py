"""In-flight drag gestures, at most one per user.

A drag always holds a ``drag`` lock on its task, so nobody else can edit or
drag that task while it is moving.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from loguru import logger

from ..constants import DRAG_TIMEOUT_SECONDS
from .locks import LockManager
from .models import BoardState, DragOperation, ListName, LockType, Position


class DragCoordinator:
    def __init__(self, state: BoardState, locks: LockManager, clock: Callable[[], float] = time.monotonic) -> None:
        self._state = state
        self._locks = locks
        self._clock = clock

    def get(self, user_id: str) -> Optional[DragOperation]:
        return self._state.drags.get(user_id)

    def start(
        self,
        user_id: str,
        task_id: str,
        start_pos: Position,
        relative_pos: Position,
        from_list: ListName | str,
    ) -> bool:
        source = ListName(from_list)
        if not self._locks.acquire(user_id, task_id, LockType.DRAG):
            return False

        prior = self._state.drags.get(user_id)
        if prior is not None and prior.task_id != task_id and self._locks.holder(prior.task_id) == user_id:
            self._locks.release(prior.task_id)

        now = self._clock()
        self._state.drags[user_id] = DragOperation(
            user_id=user_id,
            task_id=task_id,
            start_pos=start_pos,
            relative_pos=relative_pos,
            current_pos=Position(start_pos.x, start_pos.y),
            from_list=source,
            started_at=now,
            refreshed_at=now,
        )
        return True

    def update(self, user_id: str, current_pos: Position) -> Optional[DragOperation]:
        drag = self._state.drags.get(user_id)
        if drag is None:
            return None
        drag.current_pos = current_pos
        drag.refreshed_at = self._clock()
        if self._locks.holder(drag.task_id) == user_id:
            # The drag lock ages with the drag, never on its own.
            self._locks.acquire(user_id, drag.task_id, LockType.DRAG)
        return drag

    def end(self, user_id: str, release_lock: bool = True) -> Optional[DragOperation]:
        drag = self._state.drags.pop(user_id, None)
        if drag is not None and release_lock and self._locks.holder(drag.task_id) == user_id:
            self._locks.release(drag.task_id)
        return drag

    def sweep(self, now: Optional[float] = None, timeout: float = DRAG_TIMEOUT_SECONDS) -> list[DragOperation]:
        """Force-end drags not refreshed for more than *timeout* seconds."""
        now = self._clock() if now is None else now
        stale = [user_id for user_id, drag in self._state.drags.items() if now - drag.refreshed_at > timeout]
        ended: list[DragOperation] = []
        for user_id in stale:
            drag = self.end(user_id)
            if drag is not None:
                ended.append(drag)
                logger.info("Expired drag of {} on {}", user_id, drag.task_id)
        return ended
