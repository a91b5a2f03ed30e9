"""Database configuration for the replica service."""
import logging
from typing import Generator

from sqlalchemy import event
from sqlmodel import Session, create_engine

from todays.config import DATABASE_URL

logger = logging.getLogger(__name__)

# SQLite connections are shared with the threadpool FastAPI runs sync work on
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)

if DATABASE_URL.startswith("sqlite"):
    logger.info(f"Using SQLite database: {DATABASE_URL}")

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()
else:
    logger.info("Using PostgreSQL database")


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
