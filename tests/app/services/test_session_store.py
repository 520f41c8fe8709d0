"""Tests for SessionStore and the services behind it."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import StorageFailure
from app.core.queue_manager import ClientRecord
from app.models.chat_message import ChatMessage
from app.schemas.chat import ClientStatus, MessageRead, PayloadKind, Role
from app.services.client_service import ClientService
from tests.fixtures.client_fixtures import BASE_TIME


def record(client_id="ana", status=ClientStatus.WAITING, joined=BASE_TIME, attendant=None):
    return ClientRecord(client_id, client_id.title(), status, joined, attendant_id=attendant)


def message(chat_id, text, minutes, kind=PayloadKind.TEXT, sender=Role.CLIENT):
    return MessageRead(
        id=f"{chat_id}-{minutes}",
        chat_id=chat_id,
        sender=sender,
        type=kind,
        text=text,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


def test_save_client_inserts_then_replaces(store, db):
    store.save_client(record())
    store.save_client(
        record(status=ClientStatus.ACTIVE, joined=BASE_TIME + timedelta(minutes=5), attendant="att")
    )

    rows = ClientService(db).get_clients()
    assert len(rows) == 1
    assert rows[0].status == "active"
    assert rows[0].attendant_id == "att"


def test_replacing_client_keeps_its_messages(store):
    store.save_client(record())
    store.add_message(message("ana", "hi", 1))
    store.save_client(record(joined=BASE_TIME + timedelta(minutes=2)))
    assert [m.text for m in store.get_messages("ana")] == ["hi"]


def test_list_clients_returns_utc_records(store):
    store.save_client(record("beto", joined=BASE_TIME + timedelta(minutes=1)))
    store.save_client(record("ana", status=ClientStatus.CLOSED))

    records = store.list_clients()

    assert [r.id for r in records] == ["ana", "beto"]
    assert records[0].status == ClientStatus.CLOSED
    assert all(r.timestamp.tzinfo is not None for r in records)
    assert records[1].timestamp == BASE_TIME + timedelta(minutes=1)


def test_messages_come_back_in_time_order(store):
    store.save_client(record())
    store.add_message(message("ana", "/images/x.png", 3, kind=PayloadKind.IMAGE))
    store.add_message(message("ana", "first", 1))
    store.add_message(message("ana", "/audios/y.webm", 2, kind=PayloadKind.AUDIO, sender=Role.ATTENDANT))

    history = store.get_messages("ana")

    assert [m.type for m in history] == [PayloadKind.TEXT, PayloadKind.AUDIO, PayloadKind.IMAGE]
    assert history[1].sender == Role.ATTENDANT


def test_history_of_unknown_chat_is_empty(store):
    assert store.get_messages("nobody") == []


def test_fixture_chat_history(store, setup_chat_with_messages):
    history = store.get_messages(setup_chat_with_messages.id)
    assert [m.type.value for m in history] == ["text", "audio", "image"]
    assert [m.sender.value for m in history] == ["client", "attendant", "client"]


def test_purge_removes_old_clients_and_their_messages(store):
    old = BASE_TIME - timedelta(days=2)
    store.save_client(record("old", joined=old))
    store.save_client(record("new"))
    store.add_message(message("old", "late message of an old chat", 0))
    store.add_message(message("new", "recent", 1))

    clients, messages = store.purge_older_than(BASE_TIME - timedelta(hours=24))

    assert clients == 1
    assert messages == 1
    assert [r.id for r in store.list_clients()] == ["new"]
    assert store.get_messages("old") == []
    assert [m.text for m in store.get_messages("new")] == ["recent"]


def test_sqlalchemy_errors_become_storage_failures(store, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(ClientService, "get_clients", broken)
    with pytest.raises(StorageFailure):
        store.list_clients()


def test_waiting_fixture_is_listed(store, setup_waiting_client):
    records = store.list_clients()
    assert [r.id for r in records] == [setup_waiting_client.id]
    assert records[0].status == ClientStatus.WAITING
    assert records[0].timestamp == datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


def test_messages_with_the_same_timestamp_have_a_stable_order(store):
    store.save_client(record())
    for message_id in ("msg-b", "msg-c", "msg-a"):
        store.add_message(
            MessageRead(
                id=message_id,
                chat_id="ana",
                sender=Role.CLIENT,
                type=PayloadKind.TEXT,
                text=message_id,
                timestamp=BASE_TIME,
            )
        )

    assert [m.id for m in store.get_messages("ana")] == ["msg-a", "msg-b", "msg-c"]


def test_history_is_not_truncated(store, db, setup_waiting_client):
    db.add_all(
        ChatMessage(
            id=f"m{i:04d}",
            chat_id=setup_waiting_client.id,
            sender="client",
            kind="text",
            content=f"m{i}",
            sent_at=BASE_TIME + timedelta(seconds=i),
        )
        for i in range(1200)
    )
    db.commit()

    history = store.get_messages(setup_waiting_client.id)
    assert len(history) == 1200
    assert history[-1].text == "m1199"
