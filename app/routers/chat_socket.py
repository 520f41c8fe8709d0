"""
Websocket endpoint carrying every chat event.

Frames are JSON objects ``{"event": <name>, "data": <payload>}`` in both
directions. Each connection's frames are handled one at a time, in order.
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.core.app_state import AppState
from app.core.auth import verify_attendant_token
from app.core.identity import new_connection_id
from app.infra.logging_config import get_logger
from app.schemas.chat import InboundFrame

logger = get_logger("chat_socket")

router = APIRouter(tags=["chat"])


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, token: Optional[str] = Query(None)) -> None:
    state: AppState = websocket.app.state.chat
    handle = new_connection_id()
    trusted = verify_attendant_token(token, state.settings)

    await state.connections.connect(websocket, handle)
    identity = state.engine.connect(handle, trusted=trusted)
    await state.connections.send(handle, "connected", {"id": identity.value})

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = InboundFrame.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("Malformed frame from %s: %s", handle, e)
                continue
            await state.engine.handle_event(handle, frame.event, frame.data)
    except WebSocketDisconnect:
        pass
    finally:
        state.connections.disconnect(handle)
        state.engine.disconnect(handle)
