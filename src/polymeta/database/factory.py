from __future__ import annotations

import logging

from polymeta.app.settings import DatabaseConfig
from polymeta.database.interfaces import Database

logger = logging.getLogger(__name__)


def build_database(*, config: DatabaseConfig) -> Database:
    """Instantiate the metadata store selected by ``config.metadata_store.provider``."""
    store = config.metadata_store
    provider = store.provider
    logger.debug("Building %s metadata store", provider)
    if provider == "inmemory":
        from polymeta.database.inmemory import InMemoryStore

        return InMemoryStore()
    if provider == "sqlite":
        from polymeta.database.sqlite import SQLiteStore

        if not store.dsn:
            msg = "sqlite metadata store requires a dsn"
            raise ValueError(msg)
        return SQLiteStore(
            dsn=store.dsn,
            table_prefix=store.table_prefix,
            unique_keys=store.unique_keys,
            echo=store.echo,
        )
    msg = f"Unsupported metadata store provider: {provider}"
    raise ValueError(msg)


__all__ = ["build_database"]
