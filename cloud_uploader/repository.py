from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlmodel import select

from cloud_uploader.db import session_scope
from cloud_uploader.models import FileRecord


class FileRepository:
    """Metadata store for uploaded files. Ids and timestamps are assigned here."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(self, *, filename: str, storage_url: str) -> FileRecord:
        record = FileRecord(filename=filename, storage_url=storage_url)
        with session_scope(self.engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
        return record

    def find_all(self) -> list[FileRecord]:
        with session_scope(self.engine) as session:
            stmt = select(FileRecord).order_by(FileRecord.uploaded_at.desc())
            return list(session.exec(stmt).all())

    def find_by_id(self, file_id: str) -> FileRecord | None:
        with session_scope(self.engine) as session:
            return session.get(FileRecord, file_id)

    def delete_by_id(self, file_id: str) -> bool:
        with session_scope(self.engine) as session:
            record = session.get(FileRecord, file_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
        return True
