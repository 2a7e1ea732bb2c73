from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from cloud_uploader.api.routes import api_router, router
from cloud_uploader.config import Settings
from cloud_uploader.core.exceptions import register_exception_handlers
from cloud_uploader.db import create_db_engine, ensure_connection, init_db
from cloud_uploader.repository import FileRepository
from cloud_uploader.services.cloud_storage import CloudStorage
from cloud_uploader.services.upload_pipeline import UploadPipeline

logger = logging.getLogger("cloud_uploader")

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _report_storage_config(settings: Settings) -> None:
    missing = settings.missing_storage_credentials
    if missing:
        logger.error("event=startup_config status=missing missing=%s", ",".join(missing))
        logger.error("Cloudinary credentials are incomplete; uploads will fail until they are set.")
    else:
        logger.info("event=startup_config status=ok")


async def _check_storage(storage: CloudStorage) -> None:
    try:
        await run_in_threadpool(storage.ping)
        logger.info("event=storage_ping status=ok")
    except Exception as exc:
        logger.error("event=storage_ping status=failed error=%s", exc)


def _init_database(app: FastAPI) -> None:
    try:
        init_db(app.state.engine)
    except SQLAlchemyError as exc:
        logger.error("event=db_init status=failed error=%s", exc)
        return
    if ensure_connection(app.state.engine):
        logger.info("event=db_init status=ok")


def create_app(settings: Settings | None = None, storage: CloudStorage | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    engine = create_db_engine(settings)
    repository = FileRepository(engine)
    storage = storage or CloudStorage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup problems are reported, never fatal: dependent endpoints fail per request.
        _report_storage_config(settings)
        ping_task = None
        if settings.storage_configured:
            ping_task = asyncio.create_task(_check_storage(storage))
        else:
            logger.warning("event=storage_ping status=skipped reason=missing_credentials")
        app.state.storage_check = ping_task
        _init_database(app)
        yield
        if ping_task is not None and not ping_task.done():
            ping_task.cancel()
        engine.dispose()

    app = FastAPI(title="Cloud Uploader API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.repository = repository
    app.state.storage = storage
    app.state.pipeline = UploadPipeline(storage, repository)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.include_router(router)
    app.include_router(api_router)
    register_exception_handlers(app)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.settings
    logger.info("Server running on port %s", settings.port)
    logger.info("Test the backend: http://localhost:%s/api/test", settings.port)
    logger.info("Health check: http://localhost:%s/health", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
