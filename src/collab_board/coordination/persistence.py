"""Persistence port for the task lists.

Only the task lists are durable.  Locks, drags and presence live in memory
and are lost on restart.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock
from loguru import logger

from ..constants import FILE_LOCK_TIMEOUT_SECONDS, LIST_NAMES
from ..io_utils import _atomic_write_json, _load_data
from ..utils import _is_iso_timestamp, _now_iso
from .models import Task, TaskLists


class TaskRepository(ABC):
    @abstractmethod
    def load(self) -> TaskLists:
        raise NotImplementedError

    @abstractmethod
    def save(self, tasks: TaskLists) -> None:
        raise NotImplementedError


def snapshot_payload(tasks: TaskLists) -> dict[str, Any]:
    return {"tasks": tasks.to_dict(), "lastModified": _now_iso()}


def parse_snapshot(data: dict[str, Any]) -> TaskLists:
    """Rebuild task lists from a persisted snapshot.

    Anything that does not look like a snapshot yields empty lists.  Entries
    without an id or title, and repeated ids, are dropped so the loaded
    state keeps every id in exactly one list.
    """
    raw_tasks = data.get("tasks")
    if not isinstance(raw_tasks, dict):
        return TaskLists()

    lists = TaskLists()
    seen: set[str] = set()
    for name in LIST_NAMES:
        raw_list = raw_tasks.get(name)
        if not isinstance(raw_list, list):
            continue
        kept: list[Task] = []
        for item in raw_list:
            if not isinstance(item, dict) or not item.get("id") or not str(item.get("title") or "").strip():
                logger.warning("Dropping malformed task entry in '{}': {!r}", name, item)
                continue
            task = Task.from_dict(item)
            if task.id in seen:
                logger.warning("Dropping duplicate task id {} in '{}'", task.id, name)
                continue
            if not _is_iso_timestamp(task.created_at):
                task.created_at = _now_iso()
            seen.add(task.id)
            kept.append(task)
        lists.set(name, kept)
    return lists


class FileTaskRepository(TaskRepository):
    """JSON snapshot file, rewritten atomically on every save."""

    def __init__(self, path: Path, lock_path: Optional[Path] = None) -> None:
        self._path = Path(path)
        self._lock = FileLock(str(lock_path or self._path.with_suffix(self._path.suffix + ".lock")),
                              timeout=FILE_LOCK_TIMEOUT_SECONDS)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TaskLists:
        with self._lock:
            data = _load_data(self._path, {})
        tasks = parse_snapshot(data)
        logger.info(
            "Loaded board from {} (todo={} done={} ignored={})",
            self._path, len(tasks.todo), len(tasks.done), len(tasks.ignored),
        )
        return tasks

    def save(self, tasks: TaskLists) -> None:
        with self._lock:
            _atomic_write_json(self._path, snapshot_payload(tasks))


class InMemoryTaskRepository(TaskRepository):
    """Repository keeping the last snapshot in memory (used by tests and demos)."""

    def __init__(self, initial: Optional[TaskLists] = None) -> None:
        self.snapshot: dict[str, Any] = snapshot_payload(initial or TaskLists())
        self.save_count = 0

    def load(self) -> TaskLists:
        return parse_snapshot(copy.deepcopy(self.snapshot))

    def save(self, tasks: TaskLists) -> None:
        self.snapshot = snapshot_payload(tasks)
        self.save_count += 1
