from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

import pendulum

from polymeta.database.models import MetaRecord, dump_value, load_value
from polymeta.database.query import MetaCondition, MetaQuery
from polymeta.database.repositories.meta import MetaRepo
from polymeta.database.state import DatabaseState


class InMemoryMetaRepository(MetaRepo):
    def __init__(self, *, state: DatabaseState) -> None:
        self._state = state
        self.meta = self._state.meta

    def _rows(self, owner_type: str | None = None, owner_id: str | None = None) -> Iterator[MetaRecord]:
        for row in self.meta.values():
            if owner_type is not None and row.owner_type != owner_type:
                continue
            if owner_id is not None and row.owner_id != owner_id:
                continue
            yield row

    @staticmethod
    def _copy(row: MetaRecord) -> MetaRecord:
        # Callers must not mutate stored rows behind the repository's back.
        return row.model_copy(deep=True)

    def create_meta(self, *, owner_type: str, owner_id: str, key: str, value: Any) -> MetaRecord:
        # Keep the decoded JSON form, as a SQL store would read it back.
        value = load_value(dump_value(value))
        row = MetaRecord(owner_type=owner_type, owner_id=owner_id, key=key, value=value)
        self.meta[row.id] = self._copy(row)
        return row

    def get_meta(self, owner_type: str, owner_id: str, key: str) -> MetaRecord | None:
        for row in self._rows(owner_type, owner_id):
            if row.key == key:
                return self._copy(row)
        return None

    def list_metas(self, owner_type: str, owner_id: str, keys: Sequence[str] | None = None) -> list[MetaRecord]:
        wanted = set(keys) if keys is not None else None
        return [
            self._copy(row) for row in self._rows(owner_type, owner_id) if wanted is None or row.key in wanted
        ]

    def update_meta(self, record: MetaRecord) -> MetaRecord:
        if record.id not in self.meta:
            msg = f"Meta record {record.id} does not exist"
            raise KeyError(msg)
        record.value = load_value(dump_value(record.value))
        record.updated_at = pendulum.now("UTC")
        self.meta[record.id] = self._copy(record)
        return record

    def delete_metas(self, owner_type: str, owner_id: str, keys: Sequence[str] | None = None) -> int:
        wanted = set(keys) if keys is not None else None
        doomed = [row.id for row in self._rows(owner_type, owner_id) if wanted is None or row.key in wanted]
        for row_id in doomed:
            del self.meta[row_id]
        return len(doomed)

    def count_metas(self, owner_type: str | None = None, owner_id: str | None = None, key: str | None = None) -> int:
        return sum(1 for row in self._rows(owner_type, owner_id) if key is None or row.key == key)

    def find_owner_ids(self, query: MetaQuery) -> list[str]:
        by_owner: dict[str, list[MetaRecord]] = {}
        for row in self._rows(query.owner_type):
            by_owner.setdefault(row.owner_id, []).append(row)

        groups = query.groups()
        matched = [
            owner_id
            for owner_id, rows in by_owner.items()
            if not groups or any(all(self._exists(rows, cond) for cond in group) for group in groups)
        ]
        return sorted(matched)

    @staticmethod
    def _exists(rows: list[MetaRecord], cond: MetaCondition) -> bool:
        return any(row.key == cond.key and cond.matches(dump_value(row.value)) for row in rows)


__all__ = ["InMemoryMetaRepository"]
