"""ChatMessage model: one row per message exchanged in a chat."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from app.db import Base


class ChatMessage(Base):
    """Append-only message; ``chat_id`` is the client identity the chat belongs to."""

    __tablename__ = "chat_messages"

    __table_args__ = (
        Index("ix_chat_messages_chat_id_sent_at", "chat_id", "sent_at"),
    )

    id = Column(String(36), primary_key=True)
    chat_id = Column(
        String(128),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender = Column(String(16), nullable=False)  # 'client' | 'attendant'
    kind = Column(String(16), nullable=False, default="text")  # 'text' | 'audio' | 'image'
    content = Column(Text, nullable=True)  # inline text or blob URL
    reply_to = Column(String(36), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False)

    client = relationship("Client", back_populates="messages")
