from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from app.core.errors import UnknownChat
from app.core.identity import Identity
from app.core.queue_manager import QueueManager
from app.schemas.chat import MessageRead, Role


@dataclass
class RouteDecision:
    recipients: List[Identity] = field(default_factory=list)
    broadcast: bool = False


class Router:
    """Decides who receives a chat message. Reads assignments, never changes them."""

    def __init__(self, queue: QueueManager) -> None:
        self._queue = queue

    def route(self, message: MessageRead) -> RouteDecision:
        """
        Resolve recipients for ``message``.

        Client messages go to the assigned attendant and are echoed back to
        the client; attendant messages go to the client only. Raises
        UnknownChat when the chat does not exist or a client message has no
        attendant yet.
        """
        client = self._queue.get(message.chat_id)
        if client is None:
            raise UnknownChat(f"chat {message.chat_id} does not exist")

        chat_owner = Identity(client.id)
        if message.sender == Role.ATTENDANT:
            return RouteDecision(recipients=[chat_owner])

        if not client.attendant_id:
            raise UnknownChat(f"chat {message.chat_id} has no attendant assigned")
        return RouteDecision(recipients=[Identity(client.attendant_id), chat_owner])

    @staticmethod
    def degraded_broadcast() -> RouteDecision:
        """Best-effort delivery to every connection for undeliverable client messages."""
        return RouteDecision(broadcast=True)
