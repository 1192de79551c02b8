"""SQLite engine, sessions and store format bookkeeping."""

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

from sqlalchemy import String, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, Session, declarative_base, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from carton.errors import StoreIOError

Base = declarative_base()

FORMAT_VERSION = "1"


class StoreMeta(Base):
    """Key/value bookkeeping for the store file itself (format version, last open)."""

    __tablename__ = "store_meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)


def create_store_engine(db_path: Path, lock_timeout: float) -> Engine:
    """
    Engine over a single SQLite connection in exclusive locking mode.
    The file lock is taken on the first write and held until the engine is disposed.
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        poolclass=StaticPool,
        connect_args={"timeout": lock_timeout},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, _record) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA locking_mode=EXCLUSIVE")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, class_=Session, expire_on_commit=False, autoflush=False)


@contextmanager
def get_session(factory: sessionmaker) -> Generator[Session, None, None]:
    """Yield a session (context manager). Commits on success, rolls back on error."""
    with factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def _stamp_format(session: Session) -> None:
    """Check the stored format version (or write it on a new file) and record the open time."""
    version = session.get(StoreMeta, "format_version")
    if version is None:
        session.add(StoreMeta(key="format_version", value=FORMAT_VERSION))
    elif version.value != FORMAT_VERSION:
        raise StoreIOError(
            f"Unsupported store format version {version.value!r} (expected {FORMAT_VERSION})"
        )
    opened_at = datetime.now(timezone.utc).isoformat()
    row = session.get(StoreMeta, "opened_at")
    if row:
        row.value = opened_at
    else:
        session.add(StoreMeta(key="opened_at", value=opened_at))


def init_db(engine: Engine) -> None:
    """
    Create tables if they do not exist, then stamp the format.
    Models must be imported before this runs so they are registered with Base.
    The stamp is always a write, so the exclusive file lock is held from here on.
    """
    Base.metadata.create_all(engine)
    with get_session(create_session_factory(engine)) as session:
        _stamp_format(session)
