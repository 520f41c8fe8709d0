"""Tests for Directory and Identity."""

import pytest

from app.core.directory import Directory
from app.core.identity import Identity, new_connection_id
from app.schemas.chat import Role


def test_bind_and_lookup():
    directory = Directory()
    participant = directory.bind("h1", Identity("h1"), trusted=True)
    assert directory.get("h1") is participant
    assert directory.handle_for(Identity("h1")) == "h1"
    assert participant.trusted is True
    assert len(directory) == 1


def test_unbind_removes_both_directions():
    directory = Directory()
    directory.bind("h1", Identity("h1"))
    removed = directory.unbind("h1")
    assert removed is not None
    assert directory.get("h1") is None
    assert directory.handle_for(Identity("h1")) is None
    assert directory.unbind("h1") is None


def test_role_is_fixed_on_first_use():
    directory = Directory()
    directory.bind("h1", Identity("h1"))
    assert directory.assume_role("h1", Role.CLIENT) is True
    assert directory.assume_role("h1", Role.CLIENT) is True
    assert directory.assume_role("h1", Role.ATTENDANT) is False
    assert [p.handle for p in directory.online(Role.CLIENT)] == ["h1"]
    assert directory.online(Role.ATTENDANT) == []


def test_assume_role_for_unknown_handle():
    assert Directory().assume_role("nope", Role.CLIENT) is False


def test_identity_rejects_empty_value():
    with pytest.raises(ValueError):
        Identity("")


def test_connection_ids_are_unique():
    assert new_connection_id() != new_connection_id()
