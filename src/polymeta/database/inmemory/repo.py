from __future__ import annotations

from polymeta.database.inmemory.repositories import InMemoryMetaRepository
from polymeta.database.interfaces import Database
from polymeta.database.state import DatabaseState


class InMemoryStore(Database):
    def __init__(self, *, state: DatabaseState | None = None) -> None:
        self.state = state or DatabaseState()
        self.meta_repo = InMemoryMetaRepository(state=self.state)

    def close(self) -> None:
        return None


__all__ = ["InMemoryStore"]
