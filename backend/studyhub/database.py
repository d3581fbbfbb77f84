"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file `app.db` next to the
package by default) and provides small helpers used by the application
and tests.
"""

from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool

from .config import settings


def make_engine(url: str, echo: bool = False):
    """Create an engine for `url`.

    SQLite connections are shared across the threads FastAPI runs sync
    handlers on; an in-memory SQLite URL gets a single static connection
    so every session sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)


def create_db_and_tables(bind=None):
    """Create database tables using SQLModel metadata.

    This function is intended for local development and lightweight
    deployments; it is idempotent and leaves existing tables alone.
    """
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database `Session` bound to the application engine.

    The generator yields a session and ensures it is closed when the
    request scope finishes. Committed objects stay loaded so handlers
    can return them after several writes in one request.
    """
    with Session(engine, expire_on_commit=False) as session:
        yield session
