"""
Database package
"""
from finledger.db.base import Base, TimestampMixin
from finledger.db.session import (
    create_db_engine,
    create_session_factory,
    init_db,
    get_db,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "get_db",
]
