"""
Fan-out of dashboard events to connected WebSocket viewers.

Publishing never blocks and never raises. Events go through one queue that a
single sender task drains, so every viewer sees them in publish order. A
viewer whose socket errors is dropped.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from fastapi import WebSocket

from skyiq.logging_config import get_logger

logger = get_logger(__name__)


class EventBroadcaster:

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._sender: Optional[asyncio.Task] = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, initial: Optional[dict[str, Any]] = None) -> None:
        """Accept a viewer, optionally sending it ``initial`` before any live event."""
        await websocket.accept()
        if initial is not None:
            await websocket.send_json(initial)
        self._connections.add(websocket)
        logger.info("viewer_connected", viewers=len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._connections:
            self._connections.discard(websocket)
            logger.info("viewer_disconnected", viewers=len(self._connections))

    def publish(self, event: str, data: dict[str, Any]) -> None:
        """Queue one event for every viewer."""
        if not self._connections:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("broadcast_skipped_no_loop", event_name=event)
            return

        self._outbox.put_nowait({"event": event, "data": data})
        if self._sender is None or self._sender.done():
            self._sender = loop.create_task(self._drain(), name="event-broadcaster")

    async def close(self) -> None:
        if self._sender is not None:
            self._sender.cancel()
            try:
                await self._sender
            except asyncio.CancelledError:
                pass
            self._sender = None

    async def _drain(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self._deliver(message)
            finally:
                self._outbox.task_done()

    async def _deliver(self, message: dict[str, Any]) -> None:
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug("broadcast_send_failed", event_name=message["event"], error=str(e))
                self.disconnect(websocket)
