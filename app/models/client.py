"""Client model: one row per queued visitor, keyed by its connection identity."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin


class Client(Base, TimestampMixin):
    """A visitor's chat lifecycle: waiting -> active -> closed.

    ``joined_at`` drives FIFO ordering and retention; ``created_at`` and
    ``updated_at`` only track the row itself.
    """

    __tablename__ = "clients"

    __table_args__ = (Index("ix_clients_status_joined_at", "status", "joined_at"),)

    id = Column(String(128), primary_key=True)
    name = Column(String(256), nullable=False, default="")
    status = Column(String(16), nullable=False, default="waiting")
    attendant_id = Column(String(128), nullable=True, index=True)
    joined_at = Column(DateTime(timezone=True), nullable=False)

    messages = relationship(
        "ChatMessage",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="ChatMessage.sent_at",
    )
