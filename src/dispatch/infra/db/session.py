from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Iterator, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.dispatch.config import settings
from src.dispatch.errors import Conflict

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

_engine: Optional[Engine] = None
_session_factory: Optional[SessionFactory] = None


def create_engine_for_url(database_url: str) -> Engine:
    """Build an Engine for ``database_url``.

    SQLite connections are shared across the threadpool FastAPI runs sync
    dependencies in, and in-memory SQLite keeps a single connection so every
    session sees the same database.
    """

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in {"sqlite://", "sqlite:///:memory:"}:
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_sqlalchemy_session_factory(engine: Engine) -> SessionFactory:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


def _rebuild(database_url: Optional[str] = None) -> Tuple[Engine, SessionFactory]:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    engine = create_engine_for_url(database_url or settings.database_url)
    factory = create_sqlalchemy_session_factory(engine)
    _engine, _session_factory = engine, factory
    return engine, factory


def configure(database_url: Optional[str] = None) -> Engine:
    """(Re)build the process-wide engine and session factory."""

    engine, _ = _rebuild(database_url)
    return engine


def get_engine() -> Engine:
    if _engine is None:
        return _rebuild()[0]
    return _engine


def get_session_factory() -> SessionFactory:
    if _session_factory is None:
        return _rebuild()[1]
    return _session_factory


def commit(session: Session) -> None:
    """Commit the unit of work, mapping uniqueness violations to 409."""

    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Integrity error on commit: %s", exc.orig)
        raise Conflict("Duplicate value violates a uniqueness constraint") from exc


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request.

    Services commit; anything left uncommitted when the request fails is
    rolled back here.
    """

    session = get_session_factory()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
