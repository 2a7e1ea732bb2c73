from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, field_serializer
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_file_id() -> str:
    return uuid4().hex


class FileRecord(SQLModel, table=True):
    __tablename__ = "file_record"

    id: str = Field(default_factory=new_file_id, primary_key=True)
    filename: str
    storage_url: str
    uploaded_at: datetime = Field(default_factory=utc_now, index=True)


class FileOut(BaseModel):
    id: str
    filename: str
    url: str
    uploaded_at: datetime

    @field_serializer("uploaded_at")
    def serialize_uploaded_at(self, value: datetime) -> datetime:
        # SQLite hands timestamps back without tzinfo; they are stored as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileOut":
        return cls(
            id=record.id,
            filename=record.filename,
            url=record.storage_url,
            uploaded_at=record.uploaded_at,
        )


class UploadResponse(BaseModel):
    message: str
    file: FileOut


class DeleteResponse(BaseModel):
    message: str
    id: str
