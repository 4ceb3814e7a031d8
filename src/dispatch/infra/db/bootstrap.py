from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import text

from src.dispatch.config import settings
from src.dispatch.infra.db import session as db_session
from src.dispatch.infra.db.models import Base

logger = logging.getLogger(__name__)


def init_database(database_url: Optional[str] = None) -> None:  # pragma: no cover - side-effectful wiring
    """Configure the engine and, when enabled, create missing tables.

    Intended to be called from the application startup hook. In a real
    deployment schema changes should go through migrations and
    CREATE_TABLES_ON_STARTUP should be turned off.
    """

    engine = db_session.configure(database_url)
    if settings.create_tables_on_startup:
        Base.metadata.create_all(engine)
        logger.info("Database tables ensured on %s", engine.url.render_as_string(hide_password=True))


def database_ready() -> bool:
    """Return True if a trivial query succeeds against the configured engine."""

    try:
        with db_session.get_engine().connect() as conn:
            conn.execute(text("select 1"))
        return True
    except Exception:
        logger.exception("Database health check failed")
        return False
