from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from cloud_uploader.models import FileRecord
from cloud_uploader.repository import FileRepository
from cloud_uploader.services.cloud_storage import CloudStorage, StorageError

logger = logging.getLogger("cloud_uploader")


class UploadFailed(Exception):
    """An upload aborted after validation; ``message`` carries the upstream error text."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UploadPipeline:
    def __init__(self, storage: CloudStorage, repository: FileRepository):
        self.storage = storage
        self.repository = repository

    async def run(self, data: bytes, filename: str) -> FileRecord:
        """Send the buffer to remote storage, then record it. Nothing is persisted on failure."""
        try:
            stored = await run_in_threadpool(
                self.storage.upload_stream,
                data,
                filename=filename,
                resource_type="auto",
            )
        except StorageError as exc:
            logger.error("event=upload_failed stage=storage filename=%s error=%s", filename, exc)
            raise UploadFailed(str(exc)) from exc

        try:
            record = await run_in_threadpool(
                self.repository.create,
                filename=filename,
                storage_url=stored.url,
            )
        except SQLAlchemyError as exc:
            logger.error("event=upload_failed stage=metadata filename=%s error=%s", filename, exc)
            raise UploadFailed(str(exc)) from exc

        logger.info(
            "event=upload_success file_id=%s filename=%s size_bytes=%s url=%s",
            record.id,
            filename,
            len(data),
            record.storage_url,
        )
        return record
