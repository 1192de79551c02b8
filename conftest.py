"""Pytest configuration: temp store paths, an open store with a fake blob deleter, raw sessions."""

import os
import tempfile
from pathlib import Path
from typing import List

import pytest

# Keep Settings() away from the real home directory and fail lock waits quickly
_tmp = tempfile.mkdtemp(prefix="carton_test_")
os.environ.setdefault("CARTON_DB_PATH", os.path.join(_tmp, ".carton", "carton.db"))
os.environ.setdefault("CARTON_LOCK_TIMEOUT", "0.2")


class RecordingBlobDeleter:
    """BlobDeleter that only remembers what it was asked to remove."""

    def __init__(self, existing=None, error: Exception = None):
        self.existing = set(existing or [])
        self.error = error
        self.removed: List[str] = []

    def exists(self, path: str) -> bool:
        return path in self.existing

    def remove(self, path: str) -> None:
        if self.error is not None:
            raise self.error
        if path not in self.existing:
            raise FileNotFoundError(path)
        self.existing.discard(path)
        self.removed.append(path)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path for a fresh store file."""
    return tmp_path / "carton.db"


@pytest.fixture
def blob_deleter() -> RecordingBlobDeleter:
    return RecordingBlobDeleter()


@pytest.fixture
def store(db_path, blob_deleter):
    """Open store with the recording blob deleter; closed after the test."""
    from carton.store import RecordStore

    s = RecordStore.open(db_path, blob_deleter=blob_deleter, lock_timeout=0.2)
    yield s
    s.close()


@pytest.fixture
def session(db_path):
    """Session on an initialized store file, for service-level tests. Caller commits."""
    from carton.db.session import create_session_factory, create_store_engine, init_db
    from carton.files.models import FileEntry  # noqa: F401 - register with Base
    from carton.users.models import User  # noqa: F401 - register with Base

    engine = create_store_engine(db_path, 0.2)
    init_db(engine)
    with create_session_factory(engine)() as s:
        yield s
    engine.dispose()
