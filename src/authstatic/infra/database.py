# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLite schema and engine construction for the user store."""

from __future__ import annotations

import logging

from sqlalchemy import Column, Text, UniqueConstraint, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class User(Base):
    """One row per invited or active user.

    Invited: ``code`` set, ``hash`` empty. Active: ``code`` empty, ``hash`` set.
    Timestamps are ``YYYY-MM-DD HH:MM:SS`` UTC strings produced by SQLite.
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="unique_email"),)

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=False)
    code = Column(Text)
    hash = Column(Text)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text)


def database_url(dsn: str) -> str:
    """Map a file path or ``:memory:`` to a SQLAlchemy URL; full URLs pass through."""
    if "://" in dsn:
        return dsn
    if dsn == ":memory:":
        return "sqlite://"
    return f"sqlite:///{dsn}"


def create_db_engine(dsn: str) -> Engine:
    url = database_url(dsn)
    kwargs = {}
    if url.startswith("sqlite"):
        # Requests are served from a thread pool.
        kwargs["connect_args"] = {"check_same_thread": False}
        if url == "sqlite://":
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    """Create the users table if it does not exist yet."""
    Base.metadata.create_all(engine)
    logger.info("schema ready on %s", engine.url)
