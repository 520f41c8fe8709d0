"""Fixtures wiring a SessionEngine to an in-memory store and a recording transport."""

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

import pytest

from app.core.directory import Directory
from app.core.engine import SessionEngine
from app.core.queue_manager import QueueManager
from app.core.routing import Router


class StepClock:
    """Returns a strictly increasing time, one second per call."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class RecordingTransport:
    """Transport double that records every frame instead of sending it."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, Any]] = []
        self.broadcasts: List[Tuple[str, Any]] = []

    async def send(self, handle: str, event: str, data: Any = None) -> None:
        self.sent.append((handle, event, data))

    async def broadcast(self, event: str, data: Any = None) -> None:
        self.broadcasts.append((event, data))

    def events_for(self, handle: str) -> List[str]:
        return [event for h, event, _ in self.sent if h == handle]

    def last(self, handle: str, event: str) -> Any:
        for h, e, data in reversed(self.sent):
            if h == handle and e == event:
                return data
        raise AssertionError(f"{handle} never received {event}")

    def receivers_of(self, event: str) -> List[str]:
        return [h for h, e, _ in self.sent if e == event]

    def clear(self) -> None:
        self.sent.clear()
        self.broadcasts.clear()


@pytest.fixture(scope="function")
def clock():
    return StepClock()


@pytest.fixture(scope="function")
def transport():
    return RecordingTransport()


@pytest.fixture(scope="function")
def queue():
    return QueueManager()


@pytest.fixture(scope="function")
def directory():
    return Directory()


@pytest.fixture(scope="function")
def engine(queue, directory, transport, store, settings, clock):
    return SessionEngine(
        queue=queue,
        directory=directory,
        router=Router(queue),
        transport=transport,
        store=store,
        settings=settings,
        clock=clock,
    )
