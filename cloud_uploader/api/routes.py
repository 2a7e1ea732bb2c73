from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from cloud_uploader.config import Settings
from cloud_uploader.core.templates import render_template
from cloud_uploader.models import DeleteResponse, FileOut, UploadResponse
from cloud_uploader.repository import FileRepository
from cloud_uploader.services.upload_pipeline import UploadPipeline

router = APIRouter()
api_router = APIRouter(prefix="/api")

logger = logging.getLogger("cloud_uploader")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> FileRepository:
    return request.app.state.repository


def get_pipeline(request: Request) -> UploadPipeline:
    return request.app.state.pipeline


@router.get("/", include_in_schema=False)
async def home(settings: Settings = Depends(get_settings)):
    html = render_template(
        "index.html",
        {
            "api_base": "/api",
            "max_file_text": f"{settings.max_file_size_mb:.1f} MB",
        },
    )
    return HTMLResponse(content=html)


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cloudinary_configured": settings.storage_configured,
    }


@api_router.get("/test")
async def connection_test(settings: Settings = Depends(get_settings)):
    return {
        "message": "Backend is working!",
        "cloudinary_configured": settings.storage_configured,
    }


@api_router.post("/upload", response_model=UploadResponse)
async def upload(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    pipeline: UploadPipeline = Depends(get_pipeline),
):
    logger.info("event=upload_received")
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    # Never buffer more than one byte past the limit.
    if file.size is not None and file.size > settings.max_file_size:
        data = b""
        size_bytes = file.size
    else:
        data = await file.read(settings.max_file_size + 1)
        size_bytes = len(data)
    if size_bytes > settings.max_file_size:
        logger.warning(
            "event=upload_rejected reason=max_size filename=%s size_bytes=%s limit_bytes=%s",
            file.filename,
            size_bytes,
            settings.max_file_size,
        )
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum allowed size is {settings.max_file_size_mb:.1f} MB.",
        )

    logger.info(
        "event=upload_accepted filename=%s content_type=%s size_bytes=%s",
        file.filename,
        file.content_type or "application/octet-stream",
        size_bytes,
    )
    record = await pipeline.run(data, file.filename)
    return UploadResponse(message="File uploaded successfully", file=FileOut.from_record(record))


@api_router.get("/files", response_model=list[FileOut])
async def list_files(repository: FileRepository = Depends(get_repository)):
    try:
        records = await run_in_threadpool(repository.find_all)
    except SQLAlchemyError as exc:
        logger.error("event=list_failed error=%s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch files") from exc
    return [FileOut.from_record(record) for record in records]


@api_router.delete("/files/{file_id}", response_model=DeleteResponse)
async def delete_file(file_id: str, repository: FileRepository = Depends(get_repository)):
    try:
        record = await run_in_threadpool(repository.find_by_id, file_id)
        if record is None:
            raise HTTPException(status_code=404, detail="File not found")
        # Only the metadata row goes; the remote object stays in storage.
        deleted = await run_in_threadpool(repository.delete_by_id, file_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="File not found")
    except SQLAlchemyError as exc:
        logger.error("event=delete_failed file_id=%s error=%s", file_id, exc)
        raise HTTPException(status_code=500, detail="Delete failed") from exc

    logger.info("event=file_deleted file_id=%s", file_id)
    return DeleteResponse(message="File deleted from database", id=file_id)
