"""Engines, sessions and schema creation for the SQL job store.

The store writes from pool threads, so every engine returned here must be
usable from more than one thread.  For SQLite that means disabling the
same-thread check, sharing a single connection for in-memory databases,
and creating the parent directory of file databases.

Tags:
    computejobs, orm, sqlalchemy, session, engine
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .base import ComputeBase

_MEMORY_DATABASES = (None, "", ":memory:")


def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    # Result rows cascade with their job.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_jobs_engine(url: str, *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create an engine for *url* that worker threads can share.

    Extra keyword arguments (``pool_size``, ``max_overflow``, ...) go to
    :func:`sqlalchemy.create_engine` unchanged.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return sa.create_engine(parsed, echo=echo, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    if parsed.database in _MEMORY_DATABASES:
        kwargs.setdefault("poolclass", StaticPool)
    else:
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = sa.create_engine(parsed, echo=echo, **kwargs)
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def job_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions whose objects stay readable after commit.

    The store converts rows to dataclasses after the transaction ends, so
    attributes must not expire on commit.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create the job tables if they do not exist."""
    from . import tables  # noqa: F401  (registers the mappers)

    ComputeBase.metadata.create_all(engine)
