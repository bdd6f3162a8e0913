"""Task lists with validation and write-through persistence.

Every mutating call writes a full snapshot before returning.  If the write
fails the lists are restored to their previous content, no lock is
released, and :class:`PersistenceFailure` is raised, so memory and disk
never disagree.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from loguru import logger

from ..constants import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH
from .errors import PersistenceFailure, ValidationError
from .locks import LockManager
from .models import BoardState, ListName, Task, TaskLists, TaskUpdate, new_task_id
from .persistence import TaskRepository


def clean_title(raw: Any) -> str:
    if not isinstance(raw, str):
        raise ValidationError("Title must be a string")
    title = raw.strip()
    if not title:
        raise ValidationError("Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return title


def clean_description(raw: Any) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise ValidationError("Description must be a string")
    description = raw.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")
    return description


def list_name(raw: Any) -> ListName:
    try:
        return ListName(raw)
    except ValueError:
        raise ValidationError(f"Unknown list: {raw!r}. Valid: {[n.value for n in ListName]}") from None


class TaskStore:
    def __init__(self, state: BoardState, locks: LockManager, repository: TaskRepository) -> None:
        self._state = state
        self._locks = locks
        self._repository = repository

    @property
    def tasks(self) -> TaskLists:
        return self._state.tasks

    def load(self) -> TaskLists:
        """Replace the in-memory lists with the repository's snapshot."""
        self._state.tasks = self._repository.load()
        return self._state.tasks

    # -- internal helpers ---------------------------------------------------

    def _persist(self, previous: TaskLists) -> None:
        try:
            self._repository.save(self._state.tasks)
        except Exception as exc:
            self._state.tasks = previous
            logger.error("Failed to persist board, mutation rolled back: {}", exc)
            raise PersistenceFailure(f"Failed to persist board: {exc}") from exc

    def _unique_id(self) -> str:
        existing = self._state.tasks.all_ids()
        task_id = new_task_id()
        while task_id in existing:
            task_id = new_task_id()
        return task_id

    @staticmethod
    def _index_of(tasks: list[Task], task_id: str) -> Optional[int]:
        for idx, task in enumerate(tasks):
            if task.id == task_id:
                return idx
        return None

    # -- public API ---------------------------------------------------------

    def add_task(self, title: Any, description: Any = "") -> Task:
        task = Task(id=self._unique_id(), title=clean_title(title), description=clean_description(description))
        previous = copy.deepcopy(self._state.tasks)
        self._state.tasks.todo.append(task)
        self._persist(previous)
        logger.info("Task added id={} title={!r}", task.id, task.title)
        return task

    def move_task(
        self,
        task_id: str,
        from_list: ListName | str,
        to_list: ListName | str,
        index: Optional[int] = None,
    ) -> bool:
        """Move *task_id* out of *from_list* into *to_list*.

        Without *index* the task is appended at the tail of *to_list*.  With
        an index it is inserted at that position (clamped), counted after the
        task has been removed from its source; this is how same-list
        reordering works.
        """
        source_name, target_name = list_name(from_list), list_name(to_list)
        pos = self._index_of(self._state.tasks.get(source_name), task_id)
        if pos is None:
            return False

        previous = copy.deepcopy(self._state.tasks)
        task = self._state.tasks.get(source_name).pop(pos)
        target = self._state.tasks.get(target_name)
        if index is None:
            target.append(task)
        else:
            target.insert(max(0, min(int(index), len(target))), task)
        self._persist(previous)
        self._locks.release(task_id)
        logger.debug("Task {} moved {} -> {} (index={})", task_id, source_name.value, target_name.value, index)
        return True

    def update_task(self, task_id: str, fields: TaskUpdate) -> bool:
        title = clean_title(fields.title) if fields.title is not None else None
        description = clean_description(fields.description) if fields.description is not None else None

        found = self._state.tasks.find(task_id)
        if found is None:
            return False

        previous = copy.deepcopy(self._state.tasks)
        _, task = found
        if title is not None:
            task.title = title
        if description is not None:
            task.description = description
        self._persist(previous)
        return True

    def delete_task(self, task_id: str, from_list: ListName | str) -> bool:
        name = list_name(from_list)
        pos = self._index_of(self._state.tasks.get(name), task_id)
        if pos is None:
            return False

        previous = copy.deepcopy(self._state.tasks)
        self._state.tasks.get(name).pop(pos)
        self._persist(previous)
        self._locks.release(task_id)
        logger.info("Task deleted id={} list={}", task_id, name.value)
        return True

    def clear_list(self, list_type: ListName | str) -> list[Task]:
        """Empty a list, releasing the lock of every task it held."""
        name = list_name(list_type)
        previous = copy.deepcopy(self._state.tasks)
        removed = self._state.tasks.get(name)
        self._state.tasks.set(name, [])
        self._persist(previous)
        for task in removed:
            self._locks.release(task.id)
        logger.info("List {} cleared ({} tasks)", name.value, len(removed))
        return removed
