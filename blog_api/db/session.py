"""Engine and session construction.

Each application instance owns its engine and session factory (stored on
``app.state`` by the app factory), so tests can build isolated apps against
in-memory SQLite.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blog_api.db.base import Base


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine, applying the SQLite specifics FastAPI needs.

    SQLite connections are shared across the request thread pool, and an
    in-memory database must stay on a single connection to survive between
    sessions.
    """
    kwargs: dict = {"echo": echo, "future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def get_session_maker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create missing tables."""
    # Import models so they are registered on Base.metadata
    from blog_api.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


DbSession = Annotated[Session, Depends(get_db)]
