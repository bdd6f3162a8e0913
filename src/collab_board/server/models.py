"""Pydantic models for inbound WebSocket payloads.

Clients send camelCase keys; the models accept both the alias and the field
name.  Unknown keys are ignored.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..coordination.models import Position, TaskUpdate


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ClientMessage(_Payload):
    event: str
    data: dict[str, Any] = Field(default_factory=dict)


class PositionPayload(_Payload):
    x: float
    y: float

    def to_position(self) -> Position:
        return Position(x=self.x, y=self.y)


class JoinPayload(_Payload):
    name: str


class TaskAddPayload(_Payload):
    title: str
    description: str = ""


class TaskMovePayload(_Payload):
    task_id: str = Field(alias="taskId")
    from_list: str = Field(alias="fromList")
    to_list: str = Field(alias="toList")
    index: Optional[int] = None


class TaskUpdateFields(_Payload):
    title: Optional[str] = None
    description: Optional[str] = None

    def to_update(self) -> TaskUpdate:
        return TaskUpdate(title=self.title, description=self.description)


class TaskUpdatePayload(_Payload):
    task_id: str = Field(alias="taskId")
    updates: TaskUpdateFields


class TaskDeletePayload(_Payload):
    task_id: str = Field(alias="taskId")
    from_list: str = Field(alias="fromList")


class ListClearPayload(_Payload):
    list_type: str = Field(alias="listType")


class EditingStartPayload(_Payload):
    task_id: str = Field(alias="taskId")
    type: Literal["edit", "move"] = "edit"


class EditingEndPayload(_Payload):
    task_id: str = Field(alias="taskId")


class DragStartPayload(_Payload):
    task_id: str = Field(alias="taskId")
    start_pos: PositionPayload = Field(alias="startPos")
    relative_pos: PositionPayload = Field(alias="relativePos")
    from_list: str = Field(alias="fromList")


class DragMovePayload(_Payload):
    task_id: str = Field(alias="taskId")
    current_pos: PositionPayload = Field(alias="currentPos")


class DragEndPayload(_Payload):
    task_id: str = Field(alias="taskId")
    drop_list: Optional[str] = Field(default=None, alias="dropList")
    index: Optional[int] = None


class EmptyPayload(_Payload):
    pass
