"""
SessionEngine: turns each inbound event into a state transition plus notifications.

Handlers apply their in-memory transition before the first await, then
notify, then persist. The write is scheduled together with the transition and
queued behind earlier writes for the same chat, so the store sees a chat's
transitions in the order memory applied them. A failed write is logged and
does not undo the transition or the notifications already sent. A failed read
suppresses the notification that depended on it.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from app.channels.base import Transport
from app.config import Settings, get_settings
from app.core.directory import Directory, Participant
from app.core.errors import ChatError, NotPermitted, StorageFailure, UnknownChat
from app.core.identity import Identity
from app.core.queue_manager import ClientRecord, QueueManager
from app.core.routing import RouteDecision, Router
from app.infra.logging_config import get_logger
from app.schemas.chat import (
    ClientRead,
    MessageRead,
    Role,
    SendMessagePayload,
)
from app.services.session_store import SessionStore

logger = get_logger("engine")

Clock = Callable[[], datetime]
Handler = Callable[[str, Any], Awaitable[None]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clients_payload(records: Iterable[ClientRecord]) -> List[dict]:
    return [ClientRead.model_validate(r).model_dump(mode="json") for r in records]


def messages_payload(messages: Iterable[MessageRead]) -> List[dict]:
    return [m.model_dump(mode="json", by_alias=True) for m in messages]


def _as_id(data: Any, *keys: str) -> str:
    """Inbound ids arrive either bare or wrapped in an object."""
    if isinstance(data, dict):
        for key in keys:
            if data.get(key):
                return str(data[key])
        raise ValueError(f"missing {keys[0]}")
    if data is None or data == "":
        raise ValueError(f"missing {keys[0]}")
    return str(data)


class SessionEngine:
    def __init__(
        self,
        queue: QueueManager,
        directory: Directory,
        router: Router,
        transport: Transport,
        store: SessionStore,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.queue = queue
        self.directory = directory
        self.router = router
        self.transport = transport
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock or utcnow
        # chat id -> last scheduled write for that chat
        self._writes: Dict[str, asyncio.Task] = {}
        self._handlers: Dict[str, Handler] = {
            "join_queue": self._on_join_queue,
            "attendant_join": self._on_attendant_join,
            "pick_client": self._on_pick_client,
            "send_message": self._on_send_message,
            "end_chat": self._on_end_chat,
            "get_closed_chats": self._on_get_closed_chats,
            "fetch_history_messages": self._on_fetch_history,
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, handle: str, trusted: bool = False) -> Identity:
        identity = Identity.for_connection(handle)
        self.directory.bind(handle, identity, trusted=trusted)
        logger.info("Connection %s bound (trusted=%s)", handle, trusted)
        return identity

    def disconnect(self, handle: str) -> None:
        # Chats stay in their last status; an attendant's active chats are
        # not requeued or closed.
        participant = self.directory.unbind(handle)
        if participant is not None:
            logger.info(
                "Connection %s left (role=%s)",
                handle,
                participant.role.value if participant.role else None,
            )

    async def handle_event(self, handle: str, event: str, data: Any = None) -> None:
        """Run one inbound event. Never raises; failures are logged."""
        handler = self._handlers.get(event)
        if handler is None:
            logger.warning("Ignoring unknown event %r from %s", event, handle)
            return
        try:
            await handler(handle, data)
        except ChatError as e:
            logger.warning("%s from %s failed (%s): %s", event, handle, e.kind, e)
            await self._report(handle, event, e.kind, str(e))
        except (ValidationError, ValueError) as e:
            logger.warning("Invalid %s payload from %s: %s", event, handle, e)
            await self._report(handle, event, "invalid_payload", "Invalid payload")
        except Exception:
            logger.exception("Unexpected error handling %s from %s", event, handle)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def join(self, handle: str, name: str) -> int:
        participant = self._require_role(handle, Role.CLIENT)
        client_id = participant.identity.value
        position = self.queue.enqueue(client_id, name, self._clock())
        record = self.queue.get(client_id)
        write = self._schedule_write(client_id, self.store.save_client, record)

        await self.transport.send(handle, "joined_queue", {"position": position})
        await self._broadcast_queue()
        await write
        return position

    async def attendant_connect(self, handle: str) -> None:
        attendant = self._require_attendant(handle)
        await self.transport.send(
            handle, "queue_update", clients_payload(self.queue.current_queue())
        )
        await self._send_active_chats(attendant)

    async def pick(self, handle: str, client_id: str) -> ClientRecord:
        attendant = self._require_attendant(handle)
        record = self.queue.activate(client_id, attendant.identity.value)
        write = self._schedule_write(client_id, self.store.save_client, record)

        await self._send_to(
            Identity(client_id),
            "chat_started",
            {
                "attendantId": attendant.identity.value,
                "chatId": client_id,
                "attendant": self.settings.support_agent_label,
            },
        )
        await self.transport.send(
            handle,
            "chat_started",
            {
                "chatId": client_id,
                "client": ClientRead.model_validate(record).model_dump(mode="json"),
            },
        )
        await self._broadcast_queue()
        await self._send_active_chats(attendant)
        await write

        history = messages_payload(await self._read(self.store.get_messages, client_id))
        await self.transport.send(
            handle, "chat_history", {"chatId": client_id, "messages": history}
        )
        await self._send_to(Identity(client_id), "chat_history", history)
        return record

    async def send_message(self, handle: str, payload: SendMessagePayload) -> MessageRead:
        if payload.sender == Role.ATTENDANT:
            self._require_attendant(handle)
        else:
            participant = self._require_role(handle, Role.CLIENT)
            if participant.identity.value != payload.chat_id:
                raise NotPermitted("clients can only write to their own chat")

        message = MessageRead(
            id=str(uuid4()),
            chat_id=payload.chat_id,
            sender=payload.sender,
            type=payload.type,
            text=payload.text,
            reply_to=payload.reply_to,
            timestamp=self._clock(),
        )
        undeliverable: Optional[UnknownChat] = None
        try:
            decision: Optional[RouteDecision] = self.router.route(message)
        except UnknownChat as e:
            undeliverable = e
            decision = None
            if self.settings.broadcast_undeliverable and message.sender == Role.CLIENT:
                logger.warning(
                    "Broadcasting undeliverable message %s to every connection: %s",
                    message.id,
                    e,
                )
                decision = self.router.degraded_broadcast()

        write: Optional[asyncio.Task] = None
        if self.queue.get(message.chat_id) is not None:
            write = self._schedule_write(message.chat_id, self.store.add_message, message)
        else:
            logger.warning("Not storing message %s for missing chat %s", message.id, message.chat_id)

        if decision is not None:
            await self._dispatch(decision, message)
        if write is not None:
            await write

        if undeliverable is not None and decision is None:
            raise undeliverable
        return message

    async def end(self, handle: str, client_id: str) -> ClientRecord:
        attendant = self._require_attendant(handle)
        record = self.queue.close(client_id)
        write = self._schedule_write(client_id, self.store.save_client, record)

        await self._send_to(Identity(client_id), "chat_ended", {"chatId": client_id})
        await self.transport.send(handle, "chat_ended", {"chatId": client_id})
        await self._broadcast_queue()
        await self._send_active_chats(attendant)
        await write
        return record

    async def get_closed_chats(self, handle: str) -> None:
        self._require_attendant(handle)
        await self.transport.send(
            handle, "closed_chats_list", clients_payload(self.queue.closed_chats())
        )

    async def fetch_history(self, handle: str, chat_id: str) -> None:
        participant = self.directory.get(handle)
        if participant is not None and participant.role == Role.CLIENT:
            if participant.identity.value != chat_id:
                raise NotPermitted("clients can only read their own chat")
        else:
            self._require_attendant(handle)

        messages = await self._read(self.store.get_messages, chat_id)
        await self.transport.send(
            handle,
            "history_messages_received",
            {"chatId": chat_id, "messages": messages_payload(messages)},
        )

    # ------------------------------------------------------------------
    # Wire adapters
    # ------------------------------------------------------------------

    async def _on_join_queue(self, handle: str, data: Any) -> None:
        name = data.get("name") if isinstance(data, dict) else data
        name = str(name or "").strip()
        if not name:
            raise ValueError("name is required")
        await self.join(handle, name)

    async def _on_attendant_join(self, handle: str, data: Any) -> None:
        await self.attendant_connect(handle)

    async def _on_pick_client(self, handle: str, data: Any) -> None:
        await self.pick(handle, _as_id(data, "clientId", "client_id"))

    async def _on_send_message(self, handle: str, data: Any) -> None:
        await self.send_message(handle, SendMessagePayload.model_validate(data))

    async def _on_end_chat(self, handle: str, data: Any) -> None:
        await self.end(handle, _as_id(data, "clientId", "client_id", "chatId"))

    async def _on_get_closed_chats(self, handle: str, data: Any) -> None:
        await self.get_closed_chats(handle)

    async def _on_fetch_history(self, handle: str, data: Any) -> None:
        await self.fetch_history(handle, _as_id(data, "chatId", "chat_id"))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _participant(self, handle: str) -> Participant:
        participant = self.directory.get(handle)
        if participant is None:
            raise NotPermitted(f"connection {handle} is not registered")
        return participant

    def _require_role(self, handle: str, role: Role) -> Participant:
        participant = self._participant(handle)
        if not self.directory.assume_role(handle, role):
            raise NotPermitted(
                f"connection {handle} is a {participant.role.value}, not a {role.value}"
            )
        return participant

    def _require_attendant(self, handle: str) -> Participant:
        participant = self._participant(handle)
        if self.settings.attendant_token and not participant.trusted:
            raise NotPermitted(f"connection {handle} is not authenticated as an attendant")
        return self._require_role(handle, Role.ATTENDANT)

    async def _send_to(self, identity: Identity, event: str, data: Any) -> None:
        handle = self.directory.handle_for(identity)
        if handle is None:
            logger.debug("%s for %s dropped: not connected", event, identity)
            return
        await self.transport.send(handle, event, data)

    async def _dispatch(self, decision: RouteDecision, message: MessageRead) -> None:
        payload = message.model_dump(mode="json", by_alias=True)
        if decision.broadcast:
            await self.transport.broadcast("receive_message", payload)
            return
        for identity in decision.recipients:
            await self._send_to(identity, "receive_message", payload)

    async def _broadcast_queue(self) -> None:
        await self.transport.broadcast(
            "queue_update", clients_payload(self.queue.current_queue())
        )

    async def _send_active_chats(self, attendant: Participant) -> None:
        chats = self.queue.active_chats_for(attendant.identity.value)
        await self.transport.send(attendant.handle, "active_chats_update", clients_payload(chats))

    def _schedule_write(self, chat_id: str, fn: Callable[..., None], *args: Any) -> asyncio.Task:
        """
        Queue a store write behind any earlier write for the same chat.

        Must be called right after the transition it records, before the
        handler's first await, so writes land in transition order.
        """
        previous = self._writes.get(chat_id)
        task = asyncio.create_task(self._write(previous, fn, *args))
        self._writes[chat_id] = task
        task.add_done_callback(lambda t: self._forget_write(chat_id, t))
        return task

    def _forget_write(self, chat_id: str, task: asyncio.Task) -> None:
        if self._writes.get(chat_id) is task:
            del self._writes[chat_id]

    async def _write(
        self, previous: Optional[asyncio.Task], fn: Callable[..., None], *args: Any
    ) -> None:
        if previous is not None:
            await asyncio.wait({previous})
        try:
            await asyncio.to_thread(fn, *args)
        except StorageFailure as e:
            logger.error("Persistence failed, in-memory state kept: %s", e)

    async def _read(self, fn: Callable[..., Any], chat_id: str) -> Any:
        # Reads see every write already scheduled for the chat.
        pending = self._writes.get(chat_id)
        if pending is not None:
            await asyncio.wait({pending})
        return await asyncio.to_thread(fn, chat_id)

    async def _report(self, handle: str, event: str, kind: str, detail: str) -> None:
        if not self.settings.emit_error_events:
            return
        await self.transport.send(
            handle, "error", {"event": event, "kind": kind, "detail": detail}
        )
