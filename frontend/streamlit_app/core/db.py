# frontend/streamlit_app/core/db.py
# SPDX-License-Identifier: Apache-2.0
"""Engine and session factory for the metadata store.

`make_session_factory(url)` is the only constructor; the Streamlit entrypoint
caches one instance per process via `core.clients.get_session_factory()`.
In-memory SQLite URLs get a `StaticPool` so every session shares the same
database (used by tests and throwaway demos).
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.models import Base

log = logging.getLogger(__name__)


def make_engine(url: str) -> Engine:
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    Base.metadata.create_all(bind=engine)


def make_session_factory(url: str) -> sessionmaker:
    engine = make_engine(url)
    init_db(engine)
    log.info("Metadata store ready (%s)", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
