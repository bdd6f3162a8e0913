"""Board data model: users, tasks, task lists, editing locks and drags.

Wire and file representations use camelCase keys (``createdAt``,
``startPos``) because the browser clients read them directly.  In memory
everything is snake_case.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from ..constants import LIST_NAMES
from ..utils import _now_iso


class ListName(str, Enum):
    TODO = "todo"
    DONE = "done"
    IGNORED = "ignored"


class LockType(str, Enum):
    EDIT = "edit"
    DRAG = "drag"
    MOVE = "move"


def new_task_id() -> str:
    return f"task-{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------

@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Position":
        data = data or {}
        return cls(x=float(data.get("x") or 0.0), y=float(data.get("y") or 0.0))


@dataclass
class Avatar:
    color: str
    shape: str

    def to_wire(self) -> str:
        # Clients split on the last dash: "#FF6B6B-circle".
        return f"{self.color}-{self.shape}"


@dataclass
class User:
    """A connected user.  Lives exactly as long as its connection."""
    id: str
    name: str
    avatar: Avatar
    mouse: Position = field(default_factory=Position)
    editing: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar.to_wire(),
            "mouse": self.mouse.to_dict(),
            "editing": self.editing,
            "connected": True,
        }


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@dataclass
class Task:
    id: str = field(default_factory=new_task_id)
    title: str = ""
    description: str = ""
    created_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            created_at=str(data.get("createdAt") or data.get("created_at") or _now_iso()),
        )


@dataclass
class TaskUpdate:
    """Partial update of a task.  ``None`` means "leave unchanged"."""
    title: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return self.title is None and self.description is None


@dataclass
class TaskLists:
    """The three ordered task lists.  List position is the task's rank."""
    todo: list[Task] = field(default_factory=list)
    done: list[Task] = field(default_factory=list)
    ignored: list[Task] = field(default_factory=list)

    def get(self, name: ListName | str) -> list[Task]:
        return getattr(self, ListName(name).value)

    def set(self, name: ListName | str, tasks: list[Task]) -> None:
        setattr(self, ListName(name).value, tasks)

    def items(self) -> Iterator[tuple[ListName, list[Task]]]:
        for name in ListName:
            yield name, self.get(name)

    def find(self, task_id: str) -> Optional[tuple[ListName, Task]]:
        for name, tasks in self.items():
            for task in tasks:
                if task.id == task_id:
                    return name, task
        return None

    def all_ids(self) -> set[str]:
        return {task.id for _, tasks in self.items() for task in tasks}

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {name.value: [t.to_dict() for t in tasks] for name, tasks in self.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskLists":
        lists = cls()
        for name in LIST_NAMES:
            raw = data.get(name)
            if isinstance(raw, list):
                lists.set(name, [Task.from_dict(item) for item in raw if isinstance(item, dict)])
        return lists


# ---------------------------------------------------------------------------
# Locks and drags
# ---------------------------------------------------------------------------

@dataclass
class EditingLock:
    task_id: str
    user_id: str
    timestamp: float  # monotonic seconds at acquisition or last refresh
    type: LockType = LockType.EDIT
    acquired_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "type": self.type.value,
            "timestamp": self.acquired_at,
        }


@dataclass
class DragOperation:
    user_id: str
    task_id: str
    start_pos: Position
    relative_pos: Position
    current_pos: Position
    from_list: ListName
    started_at: float
    refreshed_at: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "taskId": self.task_id,
            "startPos": self.start_pos.to_dict(),
            "relativePos": self.relative_pos.to_dict(),
            "currentPos": self.current_pos.to_dict(),
            "fromList": self.from_list.value,
        }


@dataclass
class BoardState:
    """Every mutable collection of the board, owned by one Coordinator."""
    users: dict[str, User] = field(default_factory=dict)
    tasks: TaskLists = field(default_factory=TaskLists)
    locks: dict[str, EditingLock] = field(default_factory=dict)
    drags: dict[str, DragOperation] = field(default_factory=dict)
