"""Domain errors raised by the queue, router and store; caught at the event boundary."""

from __future__ import annotations


class ChatError(Exception):
    """Base class for every failure an event handler can hit."""

    kind = "chat_error"


class NotFound(ChatError):
    """Referenced client or chat does not exist."""

    kind = "not_found"


class InvalidTransition(ChatError):
    """Requested lifecycle change is not allowed from the current status."""

    kind = "invalid_transition"


class UnknownChat(ChatError):
    """A message has no resolvable recipient."""

    kind = "unknown_chat"


class StorageFailure(ChatError):
    """The session store failed to read or write."""

    kind = "storage_failure"


class NotPermitted(ChatError):
    """The connection's role does not allow the requested event."""

    kind = "not_permitted"
