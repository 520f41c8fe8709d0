"""SessionStore: durable record of clients and messages behind one facade.

Every call opens its own DB session, so the store is safe to call from a
worker thread. SQLAlchemy errors surface as StorageFailure.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import StorageFailure
from app.core.queue_manager import ClientRecord
from app.db import DatabaseManager
from app.models.chat_message import ChatMessage
from app.models.client import Client
from app.schemas.chat import (
    ClientCreate,
    ClientStatus,
    MessageCreate,
    MessageRead,
    PayloadKind,
    Role,
)
from app.services.chat_message_service import ChatMessageService
from app.services.client_service import ClientService


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def client_to_record(client: Client) -> ClientRecord:
    return ClientRecord(
        id=client.id,
        name=client.name,
        status=ClientStatus(client.status),
        timestamp=_as_utc(client.joined_at),
        attendant_id=client.attendant_id,
    )


def message_to_read(message: ChatMessage) -> MessageRead:
    return MessageRead(
        id=message.id,
        chat_id=message.chat_id,
        sender=Role(message.sender),
        type=PayloadKind(message.kind),
        text=message.content,
        reply_to=message.reply_to,
        timestamp=_as_utc(message.sent_at),
    )


class SessionStore:
    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db_manager = db_manager

    def save_client(self, record: ClientRecord) -> None:
        data = ClientCreate(
            id=record.id,
            name=record.name,
            status=record.status,
            attendant_id=record.attendant_id,
            joined_at=record.timestamp,
        )
        try:
            with self._db_manager.db_session() as db:
                ClientService(db).save_client(data)
        except SQLAlchemyError as e:
            raise StorageFailure(f"could not save client {record.id}: {e}") from e

    def add_message(self, message: MessageRead) -> None:
        data = MessageCreate(
            id=message.id,
            chat_id=message.chat_id,
            sender=message.sender,
            kind=message.type,
            content=message.text,
            reply_to=message.reply_to,
            sent_at=message.timestamp,
        )
        try:
            with self._db_manager.db_session() as db:
                ChatMessageService(db).create_message(data)
        except SQLAlchemyError as e:
            raise StorageFailure(f"could not store message {message.id}: {e}") from e

    def get_messages(self, chat_id: str) -> List[MessageRead]:
        try:
            with self._db_manager.db_session() as db:
                rows = ChatMessageService(db).get_messages(chat_id)
                return [message_to_read(m) for m in rows]
        except SQLAlchemyError as e:
            raise StorageFailure(f"could not read history for {chat_id}: {e}") from e

    def list_clients(self) -> List[ClientRecord]:
        try:
            with self._db_manager.db_session() as db:
                return [client_to_record(c) for c in ClientService(db).get_clients()]
        except SQLAlchemyError as e:
            raise StorageFailure(f"could not list clients: {e}") from e

    def purge_older_than(self, cutoff: datetime) -> tuple[int, int]:
        """Delete clients that joined before ``cutoff`` and expired messages.

        Returns (clients_deleted, messages_deleted).
        """
        try:
            with self._db_manager.db_session() as db:
                client_svc = ClientService(db)
                expired_ids = client_svc.get_ids_joined_before(cutoff)
                messages = ChatMessageService(db).delete_expired(cutoff, expired_ids)
                clients = client_svc.delete_clients(expired_ids)
                return clients, messages
        except SQLAlchemyError as e:
            raise StorageFailure(f"retention purge failed: {e}") from e
