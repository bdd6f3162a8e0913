"""WebSocket hub delivering coordinator events to connected clients.

A single WebSocket connection at ``/ws`` carries the whole board protocol
(see :mod:`collab_board.server.protocol`).  Each client gets its own outbound
queue and sender task; :meth:`BoardHub.deliver` only enqueues, so events
reach every client in the order the coordinator produced them.
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Iterable

from fastapi import WebSocket, WebSocketDisconnect
from loguru import logger

from ..coordination import Coordinator, Outbound, Target
from .protocol import handle_client_message


@dataclass
class _Client:
    ws: WebSocket
    connection_id: str
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    connected_at: float = field(default_factory=time.time)


class BoardHub:
    """Central hub that owns the live WebSocket connections.

    Usage::

        hub = BoardHub(coordinator)

        # In a FastAPI WebSocket endpoint:
        await hub.handle_connection(websocket)

        # From the sweep loop:
        hub.deliver(coordinator.sweep())
    """

    def __init__(self, coordinator: Coordinator) -> None:
        self._coordinator = coordinator
        self._clients: dict[str, _Client] = {}

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Accept a WebSocket connection and run its read loop.

        Blocks until the client disconnects, then removes the user from the
        board before any later message from another client is handled.
        """
        await websocket.accept()
        cid = f"conn-{uuid.uuid4().hex[:10]}"
        client = _Client(ws=websocket, connection_id=cid)
        self._clients[cid] = client
        sender = asyncio.create_task(self._send_loop(client))
        logger.debug("WS Hub: client {} connected (total={})", cid, self.client_count)

        try:
            client.queue.put_nowait(json.dumps({"event": "connected", "data": {"connectionId": cid}}))
            while True:
                raw = await websocket.receive_text()
                self.deliver(handle_client_message(self._coordinator, cid, raw))
        except WebSocketDisconnect:
            pass
        except Exception:
            logger.exception("WS Hub: connection {} failed", cid)
        finally:
            self._clients.pop(cid, None)
            self.deliver(self._coordinator.disconnect(cid))
            sender.cancel()
            logger.debug("WS Hub: client {} disconnected (total={})", cid, self.client_count)

    def deliver(self, events: Iterable[Outbound]) -> None:
        """Queue each event for the clients its target selects."""
        for event in events:
            payload = json.dumps(event.to_message())
            for cid, client in self._clients.items():
                if event.target is Target.SENDER and cid != event.origin:
                    continue
                if event.target is Target.OTHERS and cid == event.origin:
                    continue
                client.queue.put_nowait(payload)

    async def _send_loop(self, client: _Client) -> None:
        while True:
            payload = await client.queue.get()
            try:
                await client.ws.send_text(payload)
            except Exception as exc:
                logger.debug("WS Hub: dropping client {}: {}", client.connection_id, exc)
                self._clients.pop(client.connection_id, None)
                return
