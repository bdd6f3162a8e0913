"""Tests for decoding inbound frames into coordinator intents."""

from __future__ import annotations

import json

import pytest

from collab_board.coordination import Coordinator, Target
from collab_board.server.protocol import handle_client_message


def _send(coordinator: Coordinator, cid: str, event: str, data: dict | None = None):
    return handle_client_message(coordinator, cid, json.dumps({"event": event, "data": data or {}}))


@pytest.fixture
def joined(coordinator: Coordinator) -> Coordinator:
    _send(coordinator, "c1", "user-join", {"name": "alice"})
    _send(coordinator, "c1", "task-add", {"title": "Buy milk"})
    return coordinator


def test_malformed_json_reports_bad_message(coordinator) -> None:
    out = handle_client_message(coordinator, "c1", "not json")
    assert [e.event for e in out] == ["error"]
    assert out[0].data["code"] == "bad_message"
    assert out[0].target is Target.SENDER


def test_missing_event_field(coordinator) -> None:
    out = handle_client_message(coordinator, "c1", json.dumps({"data": {}}))
    assert out[0].data["code"] == "bad_message"


def test_unknown_event(coordinator) -> None:
    out = _send(coordinator, "c1", "teleport")
    assert out[0].data["code"] == "unknown_event"


def test_bad_payload(joined) -> None:
    out = _send(joined, "c1", "task-move", {"taskId": "x"})
    assert [e.event for e in out] == ["error"]
    assert out[0].data["code"] == "bad_payload"


def test_client_cannot_request_drag_lock(joined) -> None:
    task_id = joined.state.tasks.todo[0].id
    out = _send(joined, "c1", "editing-start", {"taskId": task_id, "type": "drag"})
    assert out[0].data["code"] == "bad_payload"
    assert joined.locks.snapshot() == {}


def test_camel_case_move_with_index(joined) -> None:
    _send(joined, "c1", "task-add", {"title": "Second"})
    second = joined.state.tasks.todo[1].id
    out = _send(joined, "c1", "task-move", {"taskId": second, "fromList": "todo", "toList": "todo", "index": 0})
    assert [e.event for e in out] == ["document-change"]
    assert joined.state.tasks.todo[0].id == second


def test_partial_update(joined) -> None:
    task_id = joined.state.tasks.todo[0].id
    _send(joined, "c1", "task-update", {"taskId": task_id, "updates": {"description": "oat"}})
    task = joined.state.tasks.todo[0]
    assert (task.title, task.description) == ("Buy milk", "oat")


def test_drag_round_trip(joined) -> None:
    task_id = joined.state.tasks.todo[0].id
    start = _send(joined, "c1", "drag-start", {
        "taskId": task_id,
        "startPos": {"x": 1, "y": 2},
        "relativePos": {"x": 0, "y": 0},
        "fromList": "todo",
    })
    assert [e.event for e in start] == ["editing-start", "drag-start"]
    _send(joined, "c1", "drag-move", {"taskId": task_id, "currentPos": {"x": 9, "y": 9}})
    end = _send(joined, "c1", "drag-end", {"taskId": task_id, "dropList": "ignored"})
    assert [e.event for e in end] == ["drag-end", "document-change", "editing-end"]
    assert joined.state.tasks.ignored[0].id == task_id


def test_extra_keys_ignored(joined) -> None:
    out = _send(joined, "c1", "mouse-move", {"x": 3, "y": 4, "pressure": 0.5})
    assert [(e.event, e.target) for e in out] == [("mouse-move", Target.OTHERS)]
    assert joined.state.users["c1"].mouse.x == 3


def test_ping(coordinator) -> None:
    out = _send(coordinator, "c1", "ping")
    assert [(e.event, e.target) for e in out] == [("pong", Target.SENDER)]
