"""FastAPI WebSocket transport: one entry per open socket, keyed by connection handle."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from app.infra.logging_config import get_logger
from app.schemas.chat import OutboundFrame

logger = get_logger("transport")


class ConnectionManager:
    """Tracks open websockets and fans frames out to them."""

    def __init__(self) -> None:
        self.active_connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket, handle: str) -> None:
        """Accept and store a new WebSocket connection."""
        await websocket.accept()
        self.active_connections[handle] = websocket
        logger.info("WebSocket connected: %s", handle)

    def disconnect(self, handle: str) -> None:
        if self.active_connections.pop(handle, None) is not None:
            logger.info("WebSocket disconnected: %s", handle)

    async def send(self, handle: str, event: str, data: Any = None) -> None:
        websocket = self.active_connections.get(handle)
        if websocket is None:
            logger.debug("Dropping %s for offline connection %s", event, handle)
            return
        await self._deliver(handle, websocket, event, data)

    async def broadcast(self, event: str, data: Any = None, exclude: Optional[str] = None) -> None:
        for handle, websocket in list(self.active_connections.items()):
            if handle != exclude:
                await self._deliver(handle, websocket, event, data)

    async def _deliver(self, handle: str, websocket: WebSocket, event: str, data: Any) -> None:
        if websocket.application_state != WebSocketState.CONNECTED:
            self.disconnect(handle)
            return
        frame = OutboundFrame(event=event, data=data)
        try:
            await websocket.send_json(frame.model_dump(mode="json"))
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            # Socket closed between the state check and the write.
            logger.debug("Send of %s to %s failed: %s", event, handle, e)
            self.disconnect(handle)

    def __len__(self) -> int:
        return len(self.active_connections)
