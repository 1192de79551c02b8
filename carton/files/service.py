"""File service: file records and the content-hash index. Callers commit."""

import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from carton.errors import ConsistencyError, DuplicateHashError, NotFoundError, SerializationError
from carton.files.models import FileEntry, FileHash, FileRecord

log = logging.getLogger(__name__)


def encode_record(record: Union[FileRecord, Mapping[str, Any]]) -> FileRecord:
    """Validate a record before it is written. Raises SerializationError on bad field types."""
    data = record.model_dump() if isinstance(record, FileRecord) else record
    try:
        return FileRecord.model_validate(data)
    except ValidationError as e:
        raise SerializationError(f"Cannot encode file record: {e}") from e


def decode_entry(entry: FileEntry) -> FileRecord:
    """Build a FileRecord from a stored row. Raises SerializationError if the row is malformed."""
    try:
        return FileRecord.model_validate(entry, from_attributes=True)
    except ValidationError as e:
        raise SerializationError(f"Cannot decode file record {entry.name!r}: {e}") from e


def get_entry(session: Session, name: str) -> Optional[FileEntry]:
    """Return file row by name or None."""
    return session.get(FileEntry, name)


def get_indexed_name(session: Session, content_hash: str) -> Optional[str]:
    """Return the file name indexed under content_hash, or None."""
    row = session.get(FileHash, content_hash)
    return row.name if row else None


def add_entry(session: Session, record: FileRecord) -> FileEntry:
    """
    Write the file row and its index row. Caller must commit (both land in one transaction).
    Re-adding an existing name replaces it and drops its old index row if the hash changed.
    A hash already indexed under another name raises DuplicateHashError.
    """
    owner_of_hash = get_indexed_name(session, record.content_hash)
    if owner_of_hash is not None and owner_of_hash != record.name:
        raise DuplicateHashError(
            f"Content hash {record.content_hash!r} already belongs to {owner_of_hash!r}"
        )

    entry = get_entry(session, record.name)
    if entry is None:
        entry = FileEntry(name=record.name)
        session.add(entry)
    elif entry.content_hash != record.content_hash:
        stale = session.get(FileHash, entry.content_hash)
        if stale is not None:
            log.debug("Dropping stale index entry %s for %s", entry.content_hash, record.name)
            session.delete(stale)

    entry.content_hash = record.content_hash
    entry.path = record.path
    entry.encrypted_payload = record.encrypted_payload
    entry.owner = record.owner

    if owner_of_hash is None:
        session.add(FileHash(content_hash=record.content_hash, name=record.name))
    return entry


def resolve_hash(session: Session, content_hash: str) -> FileEntry:
    """
    Two-step lookup: hash -> name via the index, then name -> row.
    Raises NotFoundError for an unindexed hash, ConsistencyError for a dangling index row.
    """
    name = get_indexed_name(session, content_hash)
    if name is None:
        raise NotFoundError(f"No file with content hash {content_hash!r}")
    entry = get_entry(session, name)
    if entry is None:
        raise ConsistencyError(
            f"Content hash {content_hash!r} is indexed to missing file {name!r}"
        )
    return entry


def delete_entry(session: Session, content_hash: str) -> FileRecord:
    """Remove the file row and its index row. Returns the removed record. Caller must commit."""
    entry = resolve_hash(session, content_hash)
    record = decode_entry(entry)
    session.delete(entry)
    index_row = session.get(FileHash, content_hash)
    if index_row is not None:
        session.delete(index_row)
    return record


def list_entries(session: Session, owner: Optional[str] = None) -> List[FileEntry]:
    """All file rows ordered by name, optionally only those of one owner. Index rows are not included."""
    stmt = select(FileEntry).order_by(FileEntry.name)
    if owner is not None:
        stmt = stmt.where(FileEntry.owner == owner)
    return list(session.scalars(stmt).all())
