"""
Database initialization helpers.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import memos_core.config as config
from memos_core.models import Base


class DB:
    """Database state holder (avoids global scoping issues)."""

    engine = None
    SessionLocal = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str):
    engine_kwargs = {"pool_pre_ping": True}
    is_sqlite = database_url.lower().startswith("sqlite")
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    engine = create_engine(database_url, **engine_kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def bind_engine(engine) -> None:
    """Point the session factory at an engine (used by startup and tests)."""
    DB.engine = engine
    DB.SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def init_db() -> None:
    """Initialize database connection and create tables."""
    config.validate_and_prepare_config()

    config.logger.info("Connecting to database...")
    bind_engine(build_engine(config.DATABASE_URL))

    if config.AUTO_CREATE_TABLES:
        Base.metadata.create_all(DB.engine)
    else:
        config.logger.info("Skipping table creation")

    config.logger.info("Database initialized")


def dispose_db() -> None:
    if DB.engine is not None:
        DB.engine.dispose()
    DB.engine = None
    DB.SessionLocal = None
