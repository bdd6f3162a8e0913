"""Exceptions raised by the coordination layer.

Lock conflicts and missing tasks are not errors: they are reported as
``False`` return values and turned into ``editing-failed`` / ``task-noop``
signals by the coordinator.
"""

from __future__ import annotations

from typing import Any


class BoardError(Exception):
    code = "board_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InvalidName(BoardError):
    code = "invalid_name"


class NameConflict(BoardError):
    code = "name_conflict"


class ValidationError(BoardError):
    code = "validation_error"


class PersistenceFailure(BoardError):
    """The snapshot write failed; the in-memory mutation was rolled back."""
    code = "persistence_failure"
