"""Errors raised by the record store. Absence on direct lookups is not an error."""


class StoreError(Exception):
    """Base class for all record store errors."""


class StoreIOError(StoreError):
    """Backing file could not be opened, locked or released, or an artifact could not be removed."""


class StoreClosedError(StoreError):
    """Operation attempted on a store that has been closed."""


class SerializationError(StoreError):
    """Record could not be encoded for storage or decoded from it."""


class TransactionError(StoreError):
    """Underlying database transaction failed."""


class NotFoundError(StoreError):
    """Content hash is not present in the hash index."""


class ConsistencyError(StoreError):
    """Hash index points at a file record that does not exist."""


class DuplicateHashError(StoreError):
    """Content hash is already indexed under another file name."""
