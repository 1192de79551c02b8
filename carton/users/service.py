"""User service: register users and look up password hashes. Callers commit."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from carton.errors import SerializationError
from carton.users.models import User

log = logging.getLogger(__name__)


def get_user(session: Session, name: str) -> Optional[User]:
    """Return user by name or None."""
    return session.get(User, name)


def register_user(session: Session, name: str, password_hash: bytes) -> User:
    """Store a user, overwriting the password hash of an existing one. Caller must commit."""
    if not isinstance(name, str) or not name:
        raise SerializationError(f"User name must be a non-empty string, got {name!r}")
    if not isinstance(password_hash, (bytes, bytearray, memoryview)):
        raise SerializationError(
            f"Password hash must be bytes, got {type(password_hash).__name__}"
        )
    row = get_user(session, name)
    if row:
        log.debug("Overwriting password hash for user %s", name)
        row.password_hash = bytes(password_hash)
    else:
        row = User(name=name, password_hash=bytes(password_hash))
        session.add(row)
    return row


def get_password_hash(session: Session, name: str) -> Optional[bytes]:
    """Password hash for name, or None when the user does not exist."""
    row = get_user(session, name)
    if row is None:
        return None
    return bytes(row.password_hash)
