"""
SQLAlchemy base configuration and engine/session factories.

Uses SQLAlchemy 2.0 style with type hints and declarative base.
Designed to be portable between SQLite (dev, tests) and PostgreSQL (prod).

No engine is created at import time: the application factory builds one
from configuration and hands it to the store adapter, so tests can swap
in an in-memory database without touching globals.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from flightperf.config import DatabaseConfig, config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def create_db_engine(db_config: Optional[DatabaseConfig] = None, echo: bool = False) -> Engine:
    """
    Create an engine for the configured database.

    The query timeout is pushed down to the driver where the driver
    supports it: PostgreSQL gets a server-side statement_timeout, SQLite
    a busy timeout for lock waits.
    """
    db_config = db_config or config.database
    timeout = db_config.query_timeout_seconds

    engine_kwargs = {'echo': echo}

    if db_config.is_sqlite:
        engine_kwargs['connect_args'] = {
            'check_same_thread': False,
            'timeout': timeout,
        }
        if db_config.url in ('sqlite://', 'sqlite:///:memory:'):
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs['poolclass'] = StaticPool
    elif db_config.url.startswith('postgresql'):
        engine_kwargs['connect_args'] = {
            'options': f'-c statement_timeout={int(timeout * 1000)}',
        }
        engine_kwargs['pool_pre_ping'] = True

    engine = create_engine(db_config.url, **engine_kwargs)

    if db_config.is_sqlite:
        @event.listens_for(engine, 'connect')
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """
            Configure SQLite for read-heavy analytical scans.

            WAL mode lets dashboard queries run while a bulk load is writing.
            """
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA journal_mode=WAL')
            cursor.execute('PRAGMA synchronous=NORMAL')
            cursor.execute('PRAGMA cache_size=-64000')  # 64MB
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the given engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,  # Avoid lazy loading issues
    )


@contextmanager
def get_session(engine: Engine) -> Generator[Session, None, None]:
    """
    Context manager for write sessions.

    Usage:
        with get_session(engine) as session:
            session.add(...)

    Automatically handles commit/rollback and session cleanup.
    """
    session = make_session_factory(engine)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist. For production,
    use Alembic migrations instead.
    """
    Base.metadata.create_all(bind=engine)
