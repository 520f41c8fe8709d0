from __future__ import annotations

from typing import Any, Protocol


class Transport(Protocol):
    """Delivers events to connected parties, addressed by connection handle.

    Delivery is at-most-once: sending to a handle that is gone is a silent drop.
    """

    async def send(self, handle: str, event: str, data: Any = None) -> None: ...
    async def broadcast(self, event: str, data: Any = None) -> None: ...
