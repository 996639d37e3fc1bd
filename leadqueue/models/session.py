"""Helpers for configuring SQLAlchemy engine and session factories."""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from ..errors import DatabaseConfigurationError
from . import Base


def _coerce_driver(url: str) -> str:
    """Route bare ``postgresql://`` URLs to the psycopg 3 driver."""

    parsed = make_url(url)
    if parsed.drivername in {"postgres", "postgresql"}:
        parsed = parsed.set(drivername="postgresql+psycopg")
    return parsed.render_as_string(hide_password=False)


def get_engine(database_url: str | None = None, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine for ``database_url`` or ``DATABASE_URL``."""

    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        raise DatabaseConfigurationError("DATABASE_URL is not configured")

    return create_engine(_coerce_driver(url), **kwargs)


def get_sessionmaker(
    database_url: str | None = None, *, create_tables: bool = False, **kwargs: object
) -> sessionmaker[Session]:
    """Return a session factory bound to the configured engine.

    ``create_tables`` issues ``CREATE TABLE`` for every model; production
    databases are migrated with Alembic instead.
    """

    engine = get_engine(database_url=database_url, **kwargs)
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["Base", "get_engine", "get_sessionmaker", "session_scope"]
