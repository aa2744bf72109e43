from polymeta.database.inmemory.repo import InMemoryStore

__all__ = ["InMemoryStore"]
