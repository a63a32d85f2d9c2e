from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Fans club events out to every connected terminal."""

    def __init__(self) -> None:
        self._connections: dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    async def register(self, websocket: WebSocket, terminal: str) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[websocket] = terminal
        logger.info("ws_client_connected", extra={"terminal": terminal})

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            terminal = self._connections.pop(websocket, None)
        if terminal is None:
            return
        logger.info("ws_client_disconnected", extra={"terminal": terminal})

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def broadcast(self, message_json_str: str) -> None:
        async with self._lock:
            targets = list(self._connections)

        stale: list[WebSocket] = []
        for websocket in targets:
            try:
                await websocket.send_text(message_json_str)
            except Exception:
                stale.append(websocket)

        for websocket in stale:
            await self.unregister(websocket)
