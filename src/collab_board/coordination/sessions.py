"""Connected-user directory: name uniqueness, avatars and cursor presence."""

from __future__ import annotations

import random
from typing import Optional

from loguru import logger

from ..constants import AVATAR_COLORS, AVATAR_SHAPES, NAME_MAX_LENGTH
from .drags import DragCoordinator
from .errors import InvalidName, NameConflict
from .locks import LockManager
from .models import Avatar, BoardState, Position, User


class SessionRegistry:
    """Tracks which users are connected and where their cursors are.

    Users exist only while their connection does.  Removing a user releases
    everything they held so an abandoned tab never blocks anyone.
    """

    def __init__(
        self,
        state: BoardState,
        locks: LockManager,
        drags: DragCoordinator,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._state = state
        self._locks = locks
        self._drags = drags
        self._rng = rng or random.Random()

    def _random_avatar(self) -> Avatar:
        return Avatar(color=self._rng.choice(AVATAR_COLORS), shape=self._rng.choice(AVATAR_SHAPES))

    def get(self, connection_id: str) -> Optional[User]:
        return self._state.users.get(connection_id)

    def list_users(self) -> list[User]:
        return list(self._state.users.values())

    def join(self, connection_id: str, name: str) -> User:
        if not isinstance(name, str):
            raise InvalidName("Name must be a string")
        name = name.strip()
        if not name:
            raise InvalidName("Name is required")
        if len(name) > NAME_MAX_LENGTH:
            raise InvalidName(f"Name must be at most {NAME_MAX_LENGTH} characters")

        for user in self._state.users.values():
            if user.name == name and user.id != connection_id:
                raise NameConflict(f'User "{name}" already exists')

        if connection_id in self._state.users:
            # Re-join from the same connection replaces the old identity.
            self.remove(connection_id)

        user = User(id=connection_id, name=name, avatar=self._random_avatar())
        self._state.users[connection_id] = user
        logger.info("User joined: {} as {!r} (online={})", connection_id, name, len(self._state.users))
        return user

    def remove(self, connection_id: str) -> Optional[User]:
        user = self._state.users.get(connection_id)
        if user is None:
            return None
        if user.editing and self._locks.holder(user.editing) == connection_id:
            self._locks.release(user.editing)
        self._drags.end(connection_id)
        self._locks.release_all_for(connection_id)
        del self._state.users[connection_id]
        logger.info("User left: {} ({!r}, online={})", connection_id, user.name, len(self._state.users))
        return user

    def update_mouse(self, connection_id: str, pos: Position) -> Optional[User]:
        user = self._state.users.get(connection_id)
        if user is not None:
            user.mouse = pos
        return user
