from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fitplan.config.settings import Settings


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for the configured data store.

    SQLite (local development and tests) gets foreign key enforcement and,
    for in-memory databases, a single shared connection so every session
    sees the same data. Server databases get pre-ping and recycling.
    """
    url = settings.engine_url()
    logger.info(f"Initializing database engine: {url.render_as_string(hide_password=True)}")

    if settings.uses_sqlite:
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url.database in {None, "", ":memory:"}:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=False, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        logger.warning("Using SQLite database (local development only)")
        return engine

    return create_engine(
        url,
        connect_args={"connect_timeout": 10, "application_name": "fitplan"},
        echo=False,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    logger.info("Database session factory initialized")
    return factory


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Session context manager: commit on success, roll back on any error."""
    logger.debug("Creating new database session")
    session = factory()
    try:
        yield session
        session.commit()
        logger.debug("Database session committed")
    except Exception as e:
        logger.error(f"Database session error, rolling back: {e}")
        session.rollback()
        raise
    finally:
        session.close()
        logger.debug("Database session closed")
