"""Database engine and session management"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from buddy_booking.config import settings


def create_db_engine(database_url: str) -> Engine:
    """
    Build an engine for database_url.

    PostgreSQL gets a connection pool (max 20 connections, recycled hourly).
    SQLite connections are shared across worker threads and every transaction
    starts with BEGIN IMMEDIATE, so concurrent writers queue on the database
    lock instead of failing when a read lock is upgraded.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Process-wide factory bound to settings.database_url, created on first use"""
    return create_session_factory(create_db_engine(settings.database_url))


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """One unit of work: commit on success, roll back on any exception"""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
