from collections.abc import Iterator
from contextlib import contextmanager
import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import QueuePool
from sqlmodel import Session, SQLModel, create_engine

from cloud_uploader.config import Settings

logger = logging.getLogger("cloud_uploader.db")


def create_db_engine(settings: Settings) -> Engine:
    if settings.db_url.startswith("sqlite"):
        return create_engine(settings.db_url, connect_args=settings.db_connect_args, echo=False)

    # Connection pooling for long-running server processes
    return create_engine(
        settings.db_url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,
        echo=False,
    )


def init_db(engine: Engine) -> None:
    # Import registers the table on SQLModel.metadata
    from cloud_uploader import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def ensure_connection(engine: Engine) -> bool:
    """
    Verify that the database connection is alive.
    Used at startup so an unreachable database is reported without stopping the process.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except OperationalError as exc:
        logger.error("event=db_unreachable error=%s", exc)
        return False


def get_session(engine: Engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


session_scope = contextmanager(get_session)
