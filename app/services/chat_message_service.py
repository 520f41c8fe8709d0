"""ChatMessage append and history reads."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session as DBSession

from app.models.chat_message import ChatMessage
from app.schemas.chat import MessageCreate


class ChatMessageService:
    def __init__(self, db: DBSession) -> None:
        self.db = db

    def create_message(self, data: MessageCreate) -> ChatMessage:
        dump = data.model_dump()
        dump["sender"] = data.sender.value
        dump["kind"] = data.kind.value
        msg = ChatMessage(**dump)
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def get_messages_query(self, chat_id: str) -> Query[ChatMessage]:
        return (
            self.db.query(ChatMessage)
            .filter(ChatMessage.chat_id == chat_id)
            .order_by(ChatMessage.sent_at.asc(), ChatMessage.id.asc())
        )

    def get_messages(
        self, chat_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[ChatMessage]:
        """Messages of a chat in send order; every message unless ``limit`` is given."""
        query = self.get_messages_query(chat_id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def delete_expired(self, cutoff: datetime, chat_ids: List[str]) -> int:
        """Delete messages sent before ``cutoff`` and every message of ``chat_ids``."""
        condition = ChatMessage.sent_at < cutoff
        if chat_ids:
            condition = or_(condition, ChatMessage.chat_id.in_(chat_ids))
        deleted = (
            self.db.query(ChatMessage)
            .filter(condition)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
