"""Tests for the retention sweep."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.app_state import AppState
from app.core.errors import StorageFailure
from app.core.queue_manager import ClientRecord
from app.schemas.chat import ClientStatus
from app.tasks.retention_task import purge_expired

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def state(settings, db_manager):
    return AppState(settings=settings, db_manager=db_manager)


@pytest.mark.asyncio
async def test_purge_expired_drops_old_records_everywhere(state):
    old = ClientRecord("old", "Old", ClientStatus.WAITING, NOW - timedelta(hours=30))
    new = ClientRecord("new", "New", ClientStatus.WAITING, NOW - timedelta(hours=1))
    for r in (old, new):
        state.store.save_client(r)
    state.queue.load([old, new])

    forgotten = await purge_expired(state, now=NOW)

    assert forgotten == 1
    assert [c.id for c in state.queue.current_queue()] == ["new"]
    assert [r.id for r in state.store.list_clients()] == ["new"]


@pytest.mark.asyncio
async def test_purge_expired_keeps_queue_on_store_failure(state, monkeypatch):
    old = ClientRecord("old", "Old", ClientStatus.CLOSED, NOW - timedelta(hours=30))
    state.queue.load([old])

    def broken(cutoff):
        raise StorageFailure("read only")

    monkeypatch.setattr(state.store, "purge_older_than", broken)

    assert await purge_expired(state, now=NOW) == 0
    assert state.queue.get("old") is not None


def test_restore_loads_queue_from_store(state):
    state.store.save_client(ClientRecord("ana", "Ana", ClientStatus.WAITING, NOW))
    state.store.save_client(
        ClientRecord("beto", "Beto", ClientStatus.ACTIVE, NOW, attendant_id="att")
    )

    assert state.restore() == 2
    assert [c.id for c in state.queue.current_queue()] == ["ana"]
    assert [c.id for c in state.queue.active_chats_for("att")] == ["beto"]
