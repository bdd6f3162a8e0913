"""Authoritative collaboration state: tasks, locks, drags and sessions."""

from __future__ import annotations

from .coordinator import Coordinator, Outbound, Target
from .errors import BoardError, InvalidName, NameConflict, PersistenceFailure, ValidationError
from .models import ListName, LockType, Position, Task, TaskLists, TaskUpdate
from .persistence import FileTaskRepository, InMemoryTaskRepository, TaskRepository

__all__ = [
    "BoardError",
    "Coordinator",
    "FileTaskRepository",
    "InMemoryTaskRepository",
    "InvalidName",
    "ListName",
    "LockType",
    "NameConflict",
    "Outbound",
    "PersistenceFailure",
    "Position",
    "Target",
    "Task",
    "TaskLists",
    "TaskRepository",
    "TaskUpdate",
    "ValidationError",
]
