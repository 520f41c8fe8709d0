"""Participant identity, kept separate from the transport's connection handle."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class Identity:
    """Stable identity of a connected party.

    A client's identity doubles as its chat id. Today every connection is
    given an identity equal to its connection id; reconnecting yields a new
    one.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("identity must be a non-empty string")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def for_connection(cls, connection_id: str) -> "Identity":
        return cls(connection_id)


def new_connection_id() -> str:
    """Connection ids are opaque to every component except the transport."""
    return uuid4().hex
