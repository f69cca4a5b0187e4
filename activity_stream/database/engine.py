"""
activity_stream.database.engine — Database Connection & Unit of Work
=====================================================================

The store talks to a relational database through a plain synchronous
SQLAlchemy :class:`Engine`.  Every store operation runs inside its own
short-lived session obtained from :func:`get_session`, which commits on
success, rolls back on error and always closes — so a request thread
never holds a connection past the call that needed it.

Usage::

    from activity_stream.database.engine import create_db_engine, get_session, init_db

    engine = create_db_engine()          # reads DATABASE_URL
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    with get_session(engine) as session:
        session.add(Activity(actor="user:bob", verb="documentCreated"))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from activity_stream.database.models import Base

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine` from *url* or ``DATABASE_URL``.

    The pool is sized for a host application with a handful of request
    threads:
    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    SQLite URLs skip the pool sizing (SQLite uses its own pool classes).

    Raises
    ------
    RuntimeError
        If neither *url* nor ``DATABASE_URL`` is set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid database URL."
        )

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=False)
    else:
        engine = create_engine(
            url,
            echo=False,        # Set True for SQL debugging
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,   # Reconnect stale connections automatically
            pool_timeout=10,
            pool_recycle=3600,
        )
    logger.info("Database engine created → %s", engine.url.render_as_string())
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`activity_stream.database.models`.

    Safe to call on every startup — ``CREATE TABLE IF NOT EXISTS`` under
    the hood.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is retained for dev/test environments
        where Alembic may not have run.
    """
    Base.metadata.create_all(engine)
    logger.info("Activity stream tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine, *, read_only: bool = False) -> Iterator[Session]:
    """Yield a :class:`Session` that commits on success and rolls back on
    exception.

    Objects stay readable after the block (``expire_on_commit=False``) so
    results can be handed back to callers once the session is closed.
    With ``read_only=True`` nothing is committed; closing the session
    releases the connection and discards the transaction without
    expiring the loaded objects.

    Usage::

        with get_session(engine) as session:
            session.add(Activity(actor="user:bob", verb="like"))
            # commit happens automatically on block exit
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        if not read_only:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
