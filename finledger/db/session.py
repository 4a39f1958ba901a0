"""
Database engine and session management

The engine and session factory are built by the application factory
and kept on ``app.state``; nothing here is a module-level singleton.
"""
import logging
import os
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session

from finledger.db.base import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine

    SQLite connections get foreign keys enabled so that deleting a user
    cascades to that user's entries.
    """
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        _ensure_sqlite_directory(database_url)

    engine = create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        echo=echo,  # Log SQL queries in debug mode
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def _ensure_sqlite_directory(database_url: str) -> None:
    path = make_url(database_url).database
    if not path or path == ":memory:":
        return
    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        os.makedirs(directory, exist_ok=True)
        logger.info(f"Created storage directory {directory}")


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to the engine"""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet"""
    # models must be imported so their tables are registered on Base.metadata
    import finledger.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified/created")


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting database session

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
