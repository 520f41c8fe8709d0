"""In-memory owner of client lifecycle state and the FIFO waiting queue."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.core.errors import InvalidTransition, NotFound
from app.schemas.chat import ClientStatus


@dataclass
class ClientRecord:
    id: str
    name: str
    status: ClientStatus
    timestamp: datetime
    attendant_id: Optional[str] = None

    def snapshot(self) -> "ClientRecord":
        return replace(self)


class QueueManager:
    """
    Holds every known client record and applies status transitions.

    All methods are synchronous so a transition completes before the caller
    awaits anything. Returned records are copies; mutating them does not
    touch the manager's state.
    """

    def __init__(self) -> None:
        self._clients: Dict[str, ClientRecord] = {}
        # Join order breaks ties between equal timestamps.
        self._order: Dict[str, int] = {}
        self._sequence = itertools.count()

    def load(self, records: Iterable[ClientRecord]) -> int:
        """Replace current state with records read back from the store."""
        self._clients = {}
        self._order = {}
        for record in sorted(records, key=lambda r: r.timestamp):
            self._clients[record.id] = record.snapshot()
            self._order[record.id] = next(self._sequence)
        return len(self._clients)

    def get(self, client_id: str) -> Optional[ClientRecord]:
        record = self._clients.get(client_id)
        return record.snapshot() if record else None

    def enqueue(self, client_id: str, name: str, now: datetime) -> int:
        """Create or replace a waiting record; returns its 1-based queue position."""
        existing = self._clients.get(client_id)
        if existing is not None and existing.status != ClientStatus.WAITING:
            raise InvalidTransition(
                f"client {client_id} is {existing.status.value} and cannot rejoin the queue"
            )
        self._clients[client_id] = ClientRecord(
            id=client_id,
            name=name,
            status=ClientStatus.WAITING,
            timestamp=now,
        )
        self._order[client_id] = next(self._sequence)
        return self.position_of(client_id)

    def position_of(self, client_id: str) -> int:
        for index, record in enumerate(self.current_queue(), start=1):
            if record.id == client_id:
                return index
        return 0

    def current_queue(self) -> List[ClientRecord]:
        return self._select(ClientStatus.WAITING)

    def activate(self, client_id: str, attendant_id: str) -> ClientRecord:
        record = self._require(client_id)
        if record.status == ClientStatus.CLOSED:
            raise InvalidTransition(f"chat {client_id} is closed and cannot be picked")
        if record.status == ClientStatus.ACTIVE:
            if record.attendant_id == attendant_id:
                return record.snapshot()
            raise InvalidTransition(
                f"chat {client_id} is already assigned to another attendant"
            )
        record.status = ClientStatus.ACTIVE
        record.attendant_id = attendant_id
        return record.snapshot()

    def close(self, client_id: str) -> ClientRecord:
        record = self._require(client_id)
        record.status = ClientStatus.CLOSED
        return record.snapshot()

    def active_chats_for(self, attendant_id: str) -> List[ClientRecord]:
        return [
            r
            for r in self._select(ClientStatus.ACTIVE)
            if r.attendant_id == attendant_id
        ]

    def closed_chats(self) -> List[ClientRecord]:
        return self._select(ClientStatus.CLOSED, newest_first=True)

    def purge_older_than(self, cutoff: datetime) -> List[str]:
        """Forget records that joined before ``cutoff``; returns their ids."""
        expired = [cid for cid, r in self._clients.items() if r.timestamp < cutoff]
        for cid in expired:
            del self._clients[cid]
            self._order.pop(cid, None)
        return expired

    def __len__(self) -> int:
        return len(self._clients)

    def _require(self, client_id: str) -> ClientRecord:
        record = self._clients.get(client_id)
        if record is None:
            raise NotFound(f"client {client_id} does not exist")
        return record

    def _select(self, status: ClientStatus, newest_first: bool = False) -> List[ClientRecord]:
        rows = [r.snapshot() for r in self._clients.values() if r.status == status]
        rows.sort(key=lambda r: (r.timestamp, self._order.get(r.id, 0)), reverse=newest_first)
        return rows
