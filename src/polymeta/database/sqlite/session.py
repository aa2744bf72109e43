"""Engine and session lifecycle for the SQLite backend."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, make_url
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

logger = logging.getLogger(__name__)


class SQLiteSessionManager:
    """Owns the engine; hands out one short-lived session per repository call."""

    def __init__(self, *, dsn: str, echo: bool = False) -> None:
        url = make_url(dsn)
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # Every pooled connection would otherwise get its own empty database.
                engine_kwargs["poolclass"] = StaticPool
        self._engine: Engine = create_engine(url, **engine_kwargs)
        logger.debug("Created engine for %s", url.render_as_string(hide_password=True))

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self._engine, expire_on_commit=False) as session:
            yield session

    def close(self) -> None:
        self._engine.dispose()


__all__ = ["SQLiteSessionManager"]
