"""Database engine and session management."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

if TYPE_CHECKING:
    from collections.abc import Iterator

    from citycheck.config import Settings


class Base(DeclarativeBase):
    """Declarative base for the tables citycheck reads."""


def create_db_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine described by ``settings``.

    Pool sizing only applies to server databases; SQLite keeps its default pool.
    """
    url = make_url(settings.database_url)
    options: dict[str, Any] = {"pool_pre_ping": True}

    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
        )

    return create_engine(url, **options)


def check_connection(engine: Engine) -> None:
    """Fail fast if the database cannot be reached.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If connecting or querying fails
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Read-only session for a whole run; always rolled back and closed.

    Usage:
        with session_scope(engine) as session:
            rows = session.execute(select(City)).all()
    """
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
