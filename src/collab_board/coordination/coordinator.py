"""The single serialization point for all board state.

Every intent and every sweep runs under one re-entrant lock and returns the
outbound events it produced, in order.  The transport delivers them; the
coordinator never talks to sockets itself.

Any lock that disappears during an intent (move, delete, clear, disconnect,
drag end, sweep) is announced with an ``editing-end`` event, so observers
never keep a stale editing marker.  A drag whose task loses the
dragger's ``drag`` lock ends with it and is announced with ``drag-end``.
"""

from __future__ import annotations

import random
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from loguru import logger

from ..config import BoardConfig
from ..constants import DRAG_TIMEOUT_SECONDS, LOCK_TIMEOUT_SECONDS
from .drags import DragCoordinator
from .errors import BoardError, ValidationError
from .locks import LockManager
from .models import BoardState, EditingLock, LockType, Position, TaskUpdate, User
from .persistence import FileTaskRepository, TaskRepository
from .sessions import SessionRegistry
from .task_store import TaskStore, list_name


class Target(str, Enum):
    ALL = "all"
    OTHERS = "others"   # everyone except the origin connection
    SENDER = "sender"   # only the origin connection


@dataclass
class Outbound:
    event: str
    data: dict[str, Any] = field(default_factory=dict)
    target: Target = Target.ALL
    origin: Optional[str] = None

    def to_message(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}


class Coordinator:
    """Owns the board state and applies intents one at a time.

    Usage::

        coordinator = Coordinator(FileTaskRepository(Path("data.json")))
        events = coordinator.join("conn-1", "alice")
        events += coordinator.add_task("conn-1", "Buy milk", "")
    """

    def __init__(
        self,
        repository: TaskRepository,
        *,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
        drag_timeout: float = DRAG_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.state = BoardState()
        self.lock_timeout = lock_timeout
        self.drag_timeout = drag_timeout
        self._lock = threading.RLock()
        self.locks = LockManager(self.state, clock)
        self.drags = DragCoordinator(self.state, self.locks, clock)
        self.sessions = SessionRegistry(self.state, self.locks, self.drags, rng)
        self.store = TaskStore(self.state, self.locks, repository)
        self.store.load()

    @classmethod
    def from_config(cls, config: BoardConfig) -> "Coordinator":
        return cls(
            FileTaskRepository(config.data_file),
            lock_timeout=config.lock_timeout_seconds,
            drag_timeout=config.drag_timeout_seconds,
        )

    # -- internals ---------------------------------------------------------

    @contextmanager
    def _serialized(self) -> Iterator[list[Outbound]]:
        with self._lock:
            before = dict(self.state.locks)
            out: list[Outbound] = []
            yield out
            out.extend(self._end_orphaned_drags())
            out.extend(self._released_since(before))

    def _end_orphaned_drags(self) -> list[Outbound]:
        """End every drag whose task no longer carries the dragger's drag lock."""
        ended: list[Outbound] = []
        for user_id, drag in list(self.state.drags.items()):
            lock = self.locks.get(drag.task_id)
            if lock is not None and lock.user_id == user_id and lock.type is LockType.DRAG:
                continue
            self.drags.end(user_id, release_lock=False)
            logger.debug("Drag of {} on {} ended with its lock", user_id, drag.task_id)
            ended.append(Outbound("drag-end", {"userId": user_id, "taskId": drag.task_id}))
        return ended

    def _released_since(self, before: dict[str, EditingLock]) -> list[Outbound]:
        return [
            Outbound("editing-end", {"taskId": task_id, "userId": lock.user_id})
            for task_id, lock in before.items()
            if self.state.locks.get(task_id) is not lock
        ]

    def _require_user(self, connection_id: str, out: list[Outbound]) -> Optional[User]:
        user = self.sessions.get(connection_id)
        if user is None:
            out.append(_to_sender(connection_id, "error", {"code": "not_joined", "message": "Join the board first"}))
        return user

    def _users_payload(self) -> dict[str, Any]:
        return {"users": [u.to_dict() for u in self.sessions.list_users()]}

    def _document_change(self) -> Outbound:
        return Outbound("document-change", {"tasks": self.state.tasks.to_dict()})

    # -- snapshots ---------------------------------------------------------

    def initial_state(self, user: User) -> dict[str, Any]:
        with self._lock:
            return {
                "currentUser": user.to_dict(),
                "users": [u.to_dict() for u in self.sessions.list_users()],
                "tasks": self.state.tasks.to_dict(),
                "editingLocks": self.locks.snapshot(),
            }

    def board_snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "tasks": self.state.tasks.to_dict(),
                "editingLocks": self.locks.snapshot(),
                "users": [u.to_dict() for u in self.sessions.list_users()],
            }

    # -- sessions ----------------------------------------------------------

    def join(self, connection_id: str, name: str) -> list[Outbound]:
        with self._serialized() as out:
            try:
                user = self.sessions.join(connection_id, name)
            except BoardError as exc:
                logger.info("Join refused for {}: {}", connection_id, exc.message)
                out.append(_to_sender(connection_id, "join-error", exc.to_dict()))
                return out
            out.append(_to_sender(connection_id, "initial-state", self.initial_state(user)))
            out.append(Outbound("users-update", self._users_payload(), Target.OTHERS, connection_id))
        return out

    def disconnect(self, connection_id: str) -> list[Outbound]:
        with self._serialized() as out:
            drag = self.drags.get(connection_id)
            user = self.sessions.remove(connection_id)
            if user is None:
                return out
            if drag is not None:
                out.append(Outbound("drag-end", {"userId": connection_id, "taskId": drag.task_id}))
            out.append(Outbound("users-update", self._users_payload()))
        return out

    def mouse_move(self, connection_id: str, pos: Position) -> list[Outbound]:
        with self._serialized() as out:
            user = self.sessions.update_mouse(connection_id, pos)
            if user is not None:
                out.append(Outbound(
                    "mouse-move", {"userId": connection_id, "x": pos.x, "y": pos.y}, Target.OTHERS, connection_id,
                ))
        return out

    # -- tasks -------------------------------------------------------------

    def add_task(self, connection_id: str, title: Any, description: Any = "") -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            try:
                self.store.add_task(title, description)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            out.append(self._document_change())
        return out

    def move_task(
        self,
        connection_id: str,
        task_id: str,
        from_list: str,
        to_list: str,
        index: Optional[int] = None,
    ) -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            holder = self.locks.holder(task_id)
            if holder is not None and holder != connection_id:
                out.append(_to_sender(connection_id, "editing-failed", {"taskId": task_id, "holderId": holder}))
                return out
            try:
                moved = self.store.move_task(task_id, from_list, to_list, index)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            out.append(self._document_change() if moved else _noop(connection_id, "task-move", task_id))
        return out

    def update_task(self, connection_id: str, task_id: str, fields: TaskUpdate) -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            holder = self.locks.holder(task_id)
            if holder is not None and holder != connection_id:
                out.append(_to_sender(connection_id, "editing-failed", {"taskId": task_id, "holderId": holder}))
                return out
            try:
                updated = self.store.update_task(task_id, fields)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            out.append(self._document_change() if updated else _noop(connection_id, "task-update", task_id))
        return out

    def delete_task(self, connection_id: str, task_id: str, from_list: str) -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            holder = self.locks.holder(task_id)
            if holder is not None and holder != connection_id:
                out.append(_to_sender(connection_id, "editing-failed", {"taskId": task_id, "holderId": holder}))
                return out
            try:
                deleted = self.store.delete_task(task_id, from_list)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            out.append(self._document_change() if deleted else _noop(connection_id, "task-delete", task_id))
        return out

    def clear_list(self, connection_id: str, list_type: str) -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            try:
                self.store.clear_list(list_type)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            out.append(self._document_change())
        return out

    # -- locks -------------------------------------------------------------

    def acquire_lock(self, connection_id: str, task_id: str, lock_type: str = "edit") -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            if lock_type not in (LockType.EDIT.value, LockType.MOVE.value):
                out.append(_to_sender(
                    connection_id, "error", ValidationError(f"Invalid lock type: {lock_type!r}").to_dict(),
                ))
                return out
            if self.state.tasks.find(task_id) is None:
                out.append(_noop(connection_id, "editing-start", task_id))
                return out
            if not self.locks.acquire(connection_id, task_id, lock_type):
                holder = self.locks.holder(task_id)
                logger.info("Lock conflict on {}: {} refused, held by {}", task_id, connection_id, holder)
                out.append(_to_sender(connection_id, "editing-failed", {"taskId": task_id, "holderId": holder}))
                return out
            out.append(Outbound(
                "editing-start",
                {"taskId": task_id, "userId": connection_id, "type": lock_type},
                Target.OTHERS,
                connection_id,
            ))
        return out

    def release_lock(self, connection_id: str, task_id: str) -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            holder = self.locks.holder(task_id)
            if holder is not None and holder != connection_id:
                logger.warning("{} tried to release lock on {} held by {}", connection_id, task_id, holder)
                return out
            self.locks.release(task_id)
        return out

    # -- drags -------------------------------------------------------------

    def drag_start(
        self,
        connection_id: str,
        task_id: str,
        start_pos: Position,
        relative_pos: Position,
        from_list: str,
    ) -> list[Outbound]:
        with self._serialized() as out:
            if self._require_user(connection_id, out) is None:
                return out
            try:
                source = list_name(from_list)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            if not any(t.id == task_id for t in self.state.tasks.get(source)):
                out.append(_noop(connection_id, "drag-start", task_id))
                return out
            prior = self.drags.get(connection_id)
            if not self.drags.start(connection_id, task_id, start_pos, relative_pos, source):
                out.append(_to_sender(
                    connection_id, "editing-failed", {"taskId": task_id, "holderId": self.locks.holder(task_id)},
                ))
                return out
            if prior is not None and prior.task_id != task_id:
                out.append(Outbound(
                    "drag-end", {"userId": connection_id, "taskId": prior.task_id}, Target.OTHERS, connection_id,
                ))
            drag = self.drags.get(connection_id)
            out.append(Outbound(
                "editing-start",
                {"taskId": task_id, "userId": connection_id, "type": LockType.DRAG.value},
                Target.OTHERS,
                connection_id,
            ))
            out.append(Outbound("drag-start", drag.to_dict(), Target.OTHERS, connection_id))
        return out

    def drag_move(self, connection_id: str, task_id: str, current_pos: Position) -> list[Outbound]:
        with self._serialized() as out:
            drag = self.drags.get(connection_id)
            if drag is None or drag.task_id != task_id:
                return out
            self.drags.update(connection_id, current_pos)
            out.append(Outbound(
                "drag-move",
                {"userId": connection_id, "taskId": task_id, "currentPos": current_pos.to_dict()},
                Target.OTHERS,
                connection_id,
            ))
        return out

    def drag_end(
        self,
        connection_id: str,
        task_id: str,
        drop_list: Optional[str] = None,
        index: Optional[int] = None,
    ) -> list[Outbound]:
        """End the sender's drag and, when a drop target is given, place the task there."""
        with self._serialized() as out:
            drag = self.drags.get(connection_id)
            if drag is None or drag.task_id != task_id:
                return out
            self.drags.end(connection_id)
            out.append(Outbound("drag-end", {"userId": connection_id, "taskId": task_id}, Target.OTHERS, connection_id))
            if drop_list is None or (drop_list == drag.from_list.value and index is None):
                return out
            try:
                moved = self.store.move_task(task_id, drag.from_list, drop_list, index)
            except BoardError as exc:
                out.append(_to_sender(connection_id, "error", exc.to_dict()))
                return out
            out.append(self._document_change() if moved else _noop(connection_id, "drag-end", task_id))
        return out

    # -- sweep -------------------------------------------------------------

    def sweep(self, now: Optional[float] = None) -> list[Outbound]:
        """Reclaim stale drags, then stale locks."""
        with self._serialized() as out:
            for drag in self.drags.sweep(now, self.drag_timeout):
                out.append(Outbound("drag-end", {"userId": drag.user_id, "taskId": drag.task_id}))
            self.locks.sweep(now, self.lock_timeout)
        if out:
            logger.info("Sweep reclaimed {} item(s)", len(out))
        return out


def _to_sender(connection_id: str, event: str, data: dict[str, Any]) -> Outbound:
    return Outbound(event, data, Target.SENDER, connection_id)


def _noop(connection_id: str, intent: str, task_id: str) -> Outbound:
    return _to_sender(connection_id, "task-noop", {"intent": intent, "taskId": task_id, "reason": "not_found"})
