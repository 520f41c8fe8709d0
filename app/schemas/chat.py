"""Enums and wire schemas for clients, messages and websocket frames."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClientStatus(str, Enum):
    """Lifecycle of a chat. Transitions only move forward."""

    WAITING = "waiting"
    ACTIVE = "active"
    CLOSED = "closed"


class Role(str, Enum):
    CLIENT = "client"
    ATTENDANT = "attendant"


class PayloadKind(str, Enum):
    TEXT = "text"
    AUDIO = "audio"
    IMAGE = "image"


# -----------------------------------------------------------------------------
# Records sent to connected parties
# -----------------------------------------------------------------------------


class ClientRead(BaseModel):
    """Client as shown in queue, active-chat and closed-chat snapshots."""

    id: str
    name: str
    status: ClientStatus
    attendant_id: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageRead(BaseModel):
    """Message record as delivered by ``receive_message`` and history events."""

    id: str
    chat_id: str = Field(serialization_alias="chatId")
    sender: Role
    type: PayloadKind
    text: Optional[str] = None
    reply_to: Optional[str] = Field(default=None, serialization_alias="replyTo")
    timestamp: datetime

    model_config = ConfigDict(populate_by_name=True)


# -----------------------------------------------------------------------------
# Inbound payloads
# -----------------------------------------------------------------------------


class SendMessagePayload(BaseModel):
    """Body of ``send_message``; accepts the camelCase keys browsers send."""

    chat_id: str = Field(alias="chatId", min_length=1)
    text: Optional[str] = None
    sender: Role
    type: PayloadKind = PayloadKind.TEXT
    reply_to: Optional[str] = Field(default=None, alias="replyTo")

    model_config = ConfigDict(populate_by_name=True)


# -----------------------------------------------------------------------------
# Websocket frames
# -----------------------------------------------------------------------------


class InboundFrame(BaseModel):
    """Client -> server frame."""

    event: str
    data: Any = None


class OutboundFrame(BaseModel):
    """Server -> client frame."""

    event: str
    data: Any = None


class UploadResult(BaseModel):
    url: str


# -----------------------------------------------------------------------------
# Store schemas
# -----------------------------------------------------------------------------


class ClientCreate(BaseModel):
    """Schema for creating or replacing a client row."""

    id: str
    name: str = ""
    status: ClientStatus = ClientStatus.WAITING
    attendant_id: Optional[str] = None
    joined_at: datetime


class MessageCreate(BaseModel):
    """Schema for appending a chat message."""

    id: str
    chat_id: str
    sender: Role
    kind: PayloadKind = PayloadKind.TEXT
    content: Optional[str] = None
    reply_to: Optional[str] = None
    sent_at: datetime
