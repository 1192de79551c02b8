"""File SQLAlchemy models (records and content-hash index) and the FileRecord schema."""

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from carton.db.session import Base


class FileEntry(Base):
    """Stored file metadata. Name is the primary key; the payload is kept as raw bytes."""

    __tablename__ = "files"

    name: Mapped[str] = mapped_column(String(1024), primary_key=True)
    content_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    encrypted_payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)


class FileHash(Base):
    """Secondary index: content hash -> file name. One file per hash."""

    __tablename__ = "file_hashes"

    content_hash: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(1024), nullable=False)


class FileRecord(BaseModel):
    """A file as handed to and returned by the store. Types are checked strictly,
    except that any byte sequence is accepted for the payload and stored as bytes."""

    model_config = ConfigDict(from_attributes=True, strict=True, frozen=True)

    name: str
    content_hash: str
    path: str
    encrypted_payload: bytes
    owner: str

    @field_validator("encrypted_payload", mode="before")
    @classmethod
    def _payload_as_bytes(cls, value):
        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)
        return value
