"""Who is online right now: identity <-> connection handle, plus each party's role."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from app.core.identity import Identity
from app.schemas.chat import Role


@dataclass
class Participant:
    identity: Identity
    handle: str
    role: Optional[Role] = None
    trusted: bool = False


class Directory:
    """Ephemeral registry of connected parties. Nothing here is persisted."""

    def __init__(self) -> None:
        self._by_handle: Dict[str, Participant] = {}
        self._by_identity: Dict[Identity, Participant] = {}

    def bind(self, handle: str, identity: Identity, trusted: bool = False) -> Participant:
        participant = Participant(identity=identity, handle=handle, trusted=trusted)
        self._by_handle[handle] = participant
        self._by_identity[identity] = participant
        return participant

    def unbind(self, handle: str) -> Optional[Participant]:
        participant = self._by_handle.pop(handle, None)
        if participant is not None:
            self._by_identity.pop(participant.identity, None)
        return participant

    def get(self, handle: str) -> Optional[Participant]:
        return self._by_handle.get(handle)

    def handle_for(self, identity: Identity) -> Optional[str]:
        participant = self._by_identity.get(identity)
        return participant.handle if participant else None

    def assume_role(self, handle: str, role: Role) -> bool:
        """Fix a connection's role on first use; False if it already holds another role."""
        participant = self._by_handle.get(handle)
        if participant is None:
            return False
        if participant.role is None:
            participant.role = role
        return participant.role == role

    def online(self, role: Optional[Role] = None) -> List[Participant]:
        return [
            p for p in self._by_handle.values() if role is None or p.role == role
        ]

    def __len__(self) -> int:
        return len(self._by_handle)
