"""Tests for user service: get_user, register_user, get_password_hash."""

import pytest

from carton.errors import SerializationError
from carton.users.models import User
from carton.users.service import get_password_hash, get_user, register_user


def test_get_user_none_when_empty_db(session) -> None:
    """get_user returns None when no user exists."""
    assert get_user(session, "nobody") is None
    assert get_password_hash(session, "nobody") is None


def test_register_user_adds_row(session) -> None:
    """register_user adds a User row visible after commit."""
    user = register_user(session, "alice", b"\x01\x02")
    session.commit()
    assert isinstance(user, User)
    assert get_user(session, "alice").password_hash == b"\x01\x02"


def test_register_user_overwrites(session) -> None:
    """Registering an existing name updates the hash in place."""
    register_user(session, "alice", b"old")
    session.commit()
    register_user(session, "alice", bytearray(b"new"))
    session.commit()
    assert get_password_hash(session, "alice") == b"new"
    assert session.query(User).count() == 1


def test_register_user_rejects_empty_name(session) -> None:
    """Empty name raises SerializationError."""
    with pytest.raises(SerializationError):
        register_user(session, "", b"x")
