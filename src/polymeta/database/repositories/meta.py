from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from polymeta.database.models import MetaRecord
from polymeta.database.query import MetaQuery


@runtime_checkable
class MetaRepo(Protocol):
    """Repository contract for polymorphic key/value metadata."""

    def create_meta(self, *, owner_type: str, owner_id: str, key: str, value: Any) -> MetaRecord: ...

    def get_meta(self, owner_type: str, owner_id: str, key: str) -> MetaRecord | None: ...

    def list_metas(self, owner_type: str, owner_id: str, keys: Sequence[str] | None = None) -> list[MetaRecord]: ...

    def update_meta(self, record: MetaRecord) -> MetaRecord: ...

    def delete_metas(self, owner_type: str, owner_id: str, keys: Sequence[str] | None = None) -> int: ...

    def count_metas(self, owner_type: str | None = None, owner_id: str | None = None, key: str | None = None) -> int: ...

    def find_owner_ids(self, query: MetaQuery) -> list[str]: ...
