"""SQLite database store implementation for polymeta."""

from __future__ import annotations

import logging

from polymeta.database.interfaces import Database
from polymeta.database.repositories import MetaRepo
from polymeta.database.sqlite.repositories.meta_repo import SQLiteMetaRepo
from polymeta.database.sqlite.schema import SQLiteSQLAModels, get_sqlite_sqlalchemy_models
from polymeta.database.sqlite.session import SQLiteSessionManager

logger = logging.getLogger(__name__)


class SQLiteStore(Database):
    """SQLite database store implementation.

    Keeps every annotation in a single ``<prefix>meta`` table keyed
    logically by (owner_type, owner_id, key). Nothing is cached: each
    repository call opens its own session and reads or writes through.

    Attributes:
        meta_repo: Repository for meta records.
        sessions: Engine/session manager shared by the repositories.
    """

    meta_repo: MetaRepo

    def __init__(
        self,
        *,
        dsn: str,
        table_prefix: str = "polymeta_",
        unique_keys: bool = False,
        echo: bool = False,
        sqla_models: SQLiteSQLAModels | None = None,
    ) -> None:
        """Initialize SQLite database store.

        Args:
            dsn: SQLite connection string (e.g., "sqlite:///path/to/db.sqlite").
            table_prefix: Prefix for the meta table name.
            unique_keys: Enforce one row per (owner_type, owner_id, key) in the schema.
            echo: Log emitted SQL through SQLAlchemy.
            sqla_models: Pre-built SQLAlchemy models container.
        """
        self.dsn = dsn
        self.sessions = SQLiteSessionManager(dsn=self.dsn, echo=echo)
        self._sqla_models: SQLiteSQLAModels = sqla_models or get_sqlite_sqlalchemy_models(
            table_prefix=table_prefix,
            unique_keys=unique_keys,
        )

        self._create_tables()

        self.meta_repo = SQLiteMetaRepo(
            meta_model=self._sqla_models.Meta,
            sessions=self.sessions,
        )
        logger.info("SQLite metadata store ready (table=%s)", self._sqla_models.Meta.__tablename__)

    @property
    def meta_model(self) -> type:
        return self._sqla_models.Meta

    def _create_tables(self) -> None:
        """Create SQLite tables if they don't exist."""
        self._sqla_models.Base.metadata.create_all(self.sessions.engine)
        logger.debug("SQLite tables created/verified")

    def close(self) -> None:
        """Close the database connection and release resources."""
        self.sessions.close()


__all__ = ["SQLiteStore"]
