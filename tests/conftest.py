from __future__ import annotations

import random

import pytest

from collab_board.coordination import Coordinator, InMemoryTaskRepository, TaskLists
from collab_board.coordination.persistence import TaskRepository


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingRepository(TaskRepository):
    """Loads normally, then fails every save while ``failing`` is set."""

    def __init__(self) -> None:
        self.inner = InMemoryTaskRepository()
        self.failing = False

    def load(self) -> TaskLists:
        return self.inner.load()

    def save(self, tasks: TaskLists) -> None:
        if self.failing:
            raise OSError("disk full")
        self.inner.save(tasks)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def coordinator(repo: InMemoryTaskRepository, clock: FakeClock) -> Coordinator:
    return Coordinator(repo, clock=clock, rng=random.Random(7))


@pytest.fixture
def failing_repo() -> FailingRepository:
    return FailingRepository()
