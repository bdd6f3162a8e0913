"""Map inbound WebSocket messages onto coordinator intents.

Protocol (client → server)::

    {"event": "user-join", "data": {"name": "alice"}}
    {"event": "task-add", "data": {"title": "Buy milk", "description": ""}}
    {"event": "task-move", "data": {"taskId": "...", "fromList": "todo", "toList": "done"}}
    {"event": "editing-start", "data": {"taskId": "...", "type": "edit"}}
    {"event": "mouse-move", "data": {"x": 10, "y": 20}}
    ...

Protocol (server → client)::

    {"event": "initial-state", "data": {...}}
    {"event": "document-change", "data": {"tasks": {...}}}
    {"event": "editing-failed", "data": {"taskId": "...", "holderId": "..."}}
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from ..coordination import Coordinator, Outbound, Target
from .models import (
    ClientMessage,
    DragEndPayload,
    DragMovePayload,
    DragStartPayload,
    EditingEndPayload,
    EditingStartPayload,
    EmptyPayload,
    JoinPayload,
    ListClearPayload,
    PositionPayload,
    TaskAddPayload,
    TaskDeletePayload,
    TaskMovePayload,
    TaskUpdatePayload,
)

Handler = Callable[[Coordinator, str, Any], list[Outbound]]


def _ping(coordinator: Coordinator, cid: str, payload: EmptyPayload) -> list[Outbound]:
    return [Outbound("pong", {}, Target.SENDER, cid)]


HANDLERS: dict[str, tuple[type[BaseModel], Handler]] = {
    "user-join": (JoinPayload, lambda c, cid, p: c.join(cid, p.name)),
    "task-add": (TaskAddPayload, lambda c, cid, p: c.add_task(cid, p.title, p.description)),
    "task-move": (
        TaskMovePayload,
        lambda c, cid, p: c.move_task(cid, p.task_id, p.from_list, p.to_list, p.index),
    ),
    "task-update": (TaskUpdatePayload, lambda c, cid, p: c.update_task(cid, p.task_id, p.updates.to_update())),
    "task-delete": (TaskDeletePayload, lambda c, cid, p: c.delete_task(cid, p.task_id, p.from_list)),
    "list-clear": (ListClearPayload, lambda c, cid, p: c.clear_list(cid, p.list_type)),
    "editing-start": (EditingStartPayload, lambda c, cid, p: c.acquire_lock(cid, p.task_id, p.type)),
    "editing-end": (EditingEndPayload, lambda c, cid, p: c.release_lock(cid, p.task_id)),
    "mouse-move": (PositionPayload, lambda c, cid, p: c.mouse_move(cid, p.to_position())),
    "drag-start": (
        DragStartPayload,
        lambda c, cid, p: c.drag_start(
            cid, p.task_id, p.start_pos.to_position(), p.relative_pos.to_position(), p.from_list,
        ),
    ),
    "drag-move": (DragMovePayload, lambda c, cid, p: c.drag_move(cid, p.task_id, p.current_pos.to_position())),
    "drag-end": (DragEndPayload, lambda c, cid, p: c.drag_end(cid, p.task_id, p.drop_list, p.index)),
    "ping": (EmptyPayload, _ping),
}


def _error(cid: str, code: str, message: str) -> list[Outbound]:
    return [Outbound("error", {"code": code, "message": message}, Target.SENDER, cid)]


def handle_client_message(coordinator: Coordinator, connection_id: str, raw: str) -> list[Outbound]:
    """Validate one raw text frame and apply it to the coordinator."""
    try:
        message = ClientMessage.model_validate_json(raw)
    except PayloadError as exc:
        return _error(connection_id, "bad_message", f"Malformed message: {exc.errors()[0]['msg']}")

    entry = HANDLERS.get(message.event)
    if entry is None:
        return _error(connection_id, "unknown_event", f"Unknown event: {message.event}")

    payload_model, handler = entry
    try:
        payload = payload_model.model_validate(message.data)
    except PayloadError as exc:
        return _error(connection_id, "bad_payload", f"Invalid {message.event} payload: {exc.errors()[0]['msg']}")
    return handler(coordinator, connection_id, payload)
