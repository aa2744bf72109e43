"""SQLite-specific models for polymeta metadata storage."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import pendulum
from sqlalchemy import MetaData, String, Text
from sqlmodel import DateTime, Field, Index, SQLModel, func

from polymeta.database.models import MetaRecord, load_value


class TZDateTime(DateTime):
    """DateTime type with timezone support."""

    def __init__(self, timezone: bool = True, **kw: Any) -> None:
        super().__init__(timezone=timezone, **kw)


class SQLiteBaseModelMixin(SQLModel):
    """Base mixin for SQLite models with common fields."""

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        sa_type=String,
    )
    created_at: datetime = Field(
        default_factory=lambda: pendulum.now("UTC"),
        sa_type=TZDateTime,
        sa_column_kwargs={"server_default": func.now()},
    )
    updated_at: datetime = Field(
        default_factory=lambda: pendulum.now("UTC"),
        sa_type=TZDateTime,
    )


class SQLiteMetaModel(SQLiteBaseModelMixin):
    """SQLite polymorphic meta row: one key/value for one (owner_type, owner_id)."""

    owner_type: str = Field(sa_type=String, nullable=False)
    owner_id: str = Field(sa_type=String, nullable=False)
    key: str = Field(sa_type=String, nullable=False)
    # Values are stored as JSON text; queries compare against the same encoding.
    value_json: str = Field(default="null", sa_type=Text, nullable=False)

    @property
    def value(self) -> Any:
        """Parse the value from its JSON text."""
        return load_value(self.value_json)

    def to_record(self) -> MetaRecord:
        return MetaRecord(
            id=self.id,
            owner_type=self.owner_type,
            owner_id=self.owner_id,
            key=self.key,
            value=self.value,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


def build_sqlite_table_model(
    core_model: type[SQLModel],
    *,
    tablename: str,
    metadata: MetaData | None = None,
    unique_keys: bool = False,
) -> type[SQLModel]:
    """Build a concrete SQLite table model for the meta rows."""
    table_args: list[Any] = [
        Index(f"ix_{tablename}__owner", "owner_type", "owner_id"),
        Index(f"ix_{tablename}__key", "key"),
    ]
    if unique_keys:
        table_args.append(Index(f"ix_{tablename}__unique_owner_key", "owner_type", "owner_id", "key", unique=True))

    table_attrs: dict[str, Any] = {
        "__module__": core_model.__module__,
        "__tablename__": tablename,
        "__table_args__": tuple(table_args),
    }
    if metadata is not None:
        table_attrs["metadata"] = metadata

    suffix = "UniqueTable" if unique_keys else "Table"
    # Use type() instead of create_model to properly preserve SQLModel table behavior
    return type(
        f"{core_model.__name__}{tablename.title().replace('_', '')}{suffix}",
        (core_model,),
        table_attrs,
        table=True,
    )


__all__ = [
    "SQLiteBaseModelMixin",
    "SQLiteMetaModel",
    "TZDateTime",
    "build_sqlite_table_model",
]
