"""Persistence for the carton file-sharing application: users and file records in one SQLite file.

Applications call `setup_logging()` once at startup to configure the `carton`
logger from CARTON_LOG_LEVEL / CARTON_LOG_FILE, then open a `RecordStore`.
"""

from carton.errors import (
    ConsistencyError,
    DuplicateHashError,
    NotFoundError,
    SerializationError,
    StoreClosedError,
    StoreError,
    StoreIOError,
    TransactionError,
)
from carton.files.models import FileRecord
from carton.files.storage import BlobDeleter, LocalBlobDeleter
from carton.logging_setup import setup_logging
from carton.store import RecordStore

__all__ = (
    "RecordStore",
    "FileRecord",
    "BlobDeleter",
    "LocalBlobDeleter",
    "setup_logging",
    "StoreError",
    "StoreIOError",
    "StoreClosedError",
    "SerializationError",
    "TransactionError",
    "NotFoundError",
    "ConsistencyError",
    "DuplicateHashError",
)
