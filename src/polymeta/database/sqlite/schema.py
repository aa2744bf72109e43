"""SQLAlchemy schema definitions for SQLite backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import MetaData
from sqlmodel import SQLModel

from polymeta.database.sqlite.models import SQLiteMetaModel, build_sqlite_table_model


@dataclass
class SQLiteSQLAModels:
    """Container for SQLite SQLAlchemy/SQLModel models."""

    Base: type[Any]
    Meta: type[Any]


_MODEL_CACHE: dict[tuple[str, bool], SQLiteSQLAModels] = {}


def get_sqlite_sqlalchemy_models(
    *,
    table_prefix: str = "polymeta_",
    unique_keys: bool = False,
) -> SQLiteSQLAModels:
    """Build (and cache) SQLModel ORM models for SQLite storage.

    Args:
        table_prefix: Prefix for table names (avoid reserved "sqlite_").
        unique_keys: Add a unique index on (owner_type, owner_id, key).

    Returns:
        SQLiteSQLAModels containing the table models.
    """
    if table_prefix.startswith("sqlite_"):
        msg = f"Table prefix {table_prefix!r} is reserved by SQLite"
        raise ValueError(msg)
    cache_key = (table_prefix, unique_keys)
    cached = _MODEL_CACHE.get(cache_key)
    if cached:
        return cached

    metadata_obj = MetaData()

    meta_model = build_sqlite_table_model(
        SQLiteMetaModel,
        tablename=f"{table_prefix}meta",
        metadata=metadata_obj,
        unique_keys=unique_keys,
    )

    class SQLiteBase(SQLModel):
        __abstract__ = True
        metadata = metadata_obj

    models = SQLiteSQLAModels(Base=SQLiteBase, Meta=meta_model)
    _MODEL_CACHE[cache_key] = models
    return models


__all__ = ["SQLiteSQLAModels", "get_sqlite_sqlalchemy_models"]
