"""Chats API: read-only views of the queue, closed chats and chat history."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi_pagination import Page, Params, create_page
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.core.app_state import AppState
from app.db import get_db
from app.routers.utils.dependencies import get_app_state, require_attendant
from app.schemas.chat import ClientRead, MessageRead
from app.services.chat_message_service import ChatMessageService
from app.services.session_store import message_to_read

chats_router = APIRouter(prefix="/chats", tags=["Chat"])


@chats_router.get("/queue", response_model=list[ClientRead])
def get_queue(
    _authorized: bool = Depends(require_attendant),
    state: AppState = Depends(get_app_state),
) -> list[ClientRead]:
    """Waiting clients, oldest first."""
    return [ClientRead.model_validate(r) for r in state.queue.current_queue()]


@chats_router.get("/closed", response_model=list[ClientRead])
def get_closed_chats(
    _authorized: bool = Depends(require_attendant),
    state: AppState = Depends(get_app_state),
) -> list[ClientRead]:
    """Closed chats, most recent first."""
    return [ClientRead.model_validate(r) for r in state.queue.closed_chats()]


@chats_router.get("/{chat_id}/messages", response_model=Page[MessageRead])
def list_chat_messages(
    chat_id: str,
    params: Params = Depends(),
    _authorized: bool = Depends(require_attendant),
    db: Session = Depends(get_db),
) -> Page[MessageRead]:
    """Messages of a chat in send order. Purged or unknown chats are empty."""
    query = ChatMessageService(db).get_messages_query(chat_id)
    page = paginate(query, params=params)
    rows = [message_to_read(m) for m in page.items]
    return create_page(rows, total=page.total, params=page.params)
