from __future__ import annotations

from typing import Protocol, runtime_checkable

from polymeta.database.models import MetaRecord
from polymeta.database.repositories import MetaRepo


@runtime_checkable
class Database(Protocol):
    """Backend-agnostic database contract."""

    meta_repo: MetaRepo

    def close(self) -> None: ...


__all__ = [
    "Database",
    "MetaRecord",
]
