"""RecordStore: users and file records in a single SQLite file.

Each public operation runs in its own session, i.e. one transaction. Lookups by
key return None (or False) when nothing is stored; everything else that goes
wrong is raised as a StoreError subclass (see carton.errors).
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, List, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from carton.config import Settings, get_settings
from carton.db.session import create_session_factory, create_store_engine, get_session, init_db
from carton.errors import StoreClosedError, StoreIOError, TransactionError
from carton.files import service as files_service
from carton.files.models import FileRecord
from carton.files.storage import BlobDeleter, LocalBlobDeleter
from carton.users import service as users_service

log = logging.getLogger(__name__)


class RecordStore:
    """Durable store for users and file records.

    Use `RecordStore.open()` (or `from_settings()`) rather than the constructor.
    The backing file is locked exclusively until `close()`; a store is also a
    context manager that closes itself on exit.

    Parameters:
        engine: Engine bound to the backing file, already initialized.
        db_path: Path of the backing file, for logging.
        blob_deleter: Removes on-disk artifacts when a file record is deleted.
    """

    def __init__(self, engine, db_path: Path, blob_deleter: Optional[BlobDeleter] = None):
        self._engine = engine
        self._db_path = db_path
        self._session_factory: Optional[sessionmaker] = create_session_factory(engine)
        self._blob_deleter: BlobDeleter = blob_deleter or LocalBlobDeleter()

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        *,
        blob_deleter: Optional[BlobDeleter] = None,
        lock_timeout: Optional[float] = None,
    ) -> "RecordStore":
        """Open or create the store at path. Raises StoreIOError if it cannot be opened or locked."""
        db_path = Path(path)
        if lock_timeout is None:
            lock_timeout = get_settings().lock_timeout
        engine = create_store_engine(db_path, lock_timeout)
        try:
            init_db(engine)
        except StoreIOError:
            engine.dispose()
            raise
        except (SQLAlchemyError, OSError) as e:
            engine.dispose()
            log.warning("Could not open record store at %s: %s", db_path, e)
            raise StoreIOError(f"Could not open record store at {db_path}: {e}") from e
        log.info("Opened record store at %s", db_path)
        return cls(engine, db_path, blob_deleter=blob_deleter)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        blob_deleter: Optional[BlobDeleter] = None,
    ) -> "RecordStore":
        """Open the store at the configured db_path, creating its directory if needed."""
        settings = settings or get_settings()
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls.open(
            settings.db_path,
            blob_deleter=blob_deleter,
            lock_timeout=settings.lock_timeout,
        )

    @property
    def path(self) -> Path:
        return self._db_path

    @property
    def closed(self) -> bool:
        return self._session_factory is None

    def close(self) -> None:
        """Release the backing file. Closing an already closed store does nothing."""
        if self._session_factory is None:
            return
        self._session_factory = None
        self._engine.dispose()
        log.info("Closed record store at %s", self._db_path)

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Generator[Session, None, None]:
        if self._session_factory is None:
            raise StoreClosedError(f"Record store at {self._db_path} is closed")
        try:
            with get_session(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            log.warning("Transaction failed on %s: %s", self._db_path, e)
            raise TransactionError(str(e)) from e

    # Users

    def register_user(self, name: str, password_hash: bytes) -> None:
        """Store a user. Re-registering a name overwrites its password hash."""
        with self._transaction() as session:
            users_service.register_user(session, name, password_hash)
        log.debug("Registered user %s", name)

    def is_user(self, name: str) -> bool:
        with self._transaction() as session:
            return users_service.get_user(session, name) is not None

    def get_password_hash(self, name: str) -> Optional[bytes]:
        """Password hash of name, or None for an unknown user."""
        with self._transaction() as session:
            return users_service.get_password_hash(session, name)

    # Files

    def add_file(self, record: Union[FileRecord, Mapping[str, Any]]) -> FileRecord:
        """Write the record and its content-hash index entry atomically. Returns the stored record."""
        encoded = files_service.encode_record(record)
        with self._transaction() as session:
            files_service.add_entry(session, encoded)
        log.debug("Added file %s (%s) for %s", encoded.name, encoded.content_hash, encoded.owner)
        return encoded

    def get_file_by_name(self, name: str) -> Optional[FileRecord]:
        with self._transaction() as session:
            entry = files_service.get_entry(session, name)
            if entry is None:
                return None
            return files_service.decode_entry(entry)

    def get_file_by_hash(self, content_hash: str) -> FileRecord:
        """Raises NotFoundError for an unknown hash and ConsistencyError for a dangling index entry."""
        with self._transaction() as session:
            return files_service.decode_entry(files_service.resolve_hash(session, content_hash))

    def has_file(self, content_hash: str) -> bool:
        with self._transaction() as session:
            return files_service.get_indexed_name(session, content_hash) is not None

    def delete_file(self, content_hash: str) -> FileRecord:
        """
        Remove the record, its index entry and the artifact at its path.
        The metadata removal is committed before the artifact is touched and is
        never rolled back. A missing artifact is only logged; any other failure
        to remove it raises StoreIOError.

        An index entry whose file record is missing raises ConsistencyError and
        nothing is removed. Re-adding a file under the indexed name repairs the
        entry, after which it can be deleted normally.
        """
        with self._transaction() as session:
            record = files_service.delete_entry(session, content_hash)
        log.info("Deleted file %s (%s)", record.name, content_hash)
        self._remove_artifact(record.path)
        return record

    def _remove_artifact(self, path: str) -> None:
        if not path or not self._blob_deleter.exists(path):
            log.warning("Artifact of deleted file already missing: %s", path)
            return
        try:
            self._blob_deleter.remove(path)
        except FileNotFoundError:
            log.warning("Artifact of deleted file already missing: %s", path)
        except OSError as e:
            raise StoreIOError(f"Could not remove artifact {path}: {e}") from e

    def get_all_files(self) -> List[FileRecord]:
        """Every file record, ordered by name."""
        with self._transaction() as session:
            return [files_service.decode_entry(e) for e in files_service.list_entries(session)]

    def get_files_by_owner(self, owner: str) -> List[FileRecord]:
        with self._transaction() as session:
            return [
                files_service.decode_entry(e)
                for e in files_service.list_entries(session, owner=owner)
            ]

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<RecordStore {self._db_path} ({state})>"
