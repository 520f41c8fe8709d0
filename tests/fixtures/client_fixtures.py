"""Fixtures for client and message rows."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.models.chat_message import ChatMessage
from app.models.client import Client

BASE_TIME = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def setup_waiting_client(db, faker):
    """A waiting client row that joined at BASE_TIME."""
    client = Client(
        id=uuid4().hex,
        name=faker.first_name(),
        status="waiting",
        joined_at=BASE_TIME,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@pytest.fixture(scope="function")
def setup_chat_with_messages(db, faker):
    """An active client with three messages of mixed kinds, one minute apart."""
    client = Client(
        id=uuid4().hex,
        name=faker.first_name(),
        status="active",
        attendant_id="attendant-1",
        joined_at=BASE_TIME,
    )
    db.add(client)
    db.flush()
    kinds = [
        ("client", "text", "hi"),
        ("attendant", "audio", "/audios/1-1.webm"),
        ("client", "image", "/images/2-2.png"),
    ]
    for offset, (sender, kind, content) in enumerate(kinds, start=1):
        db.add(
            ChatMessage(
                id=str(uuid4()),
                chat_id=client.id,
                sender=sender,
                kind=kind,
                content=content,
                sent_at=BASE_TIME + timedelta(minutes=offset),
            )
        )
    db.commit()
    db.refresh(client)
    return client
