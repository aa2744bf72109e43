"""SQLite repository implementations for polymeta."""

from polymeta.database.sqlite.repositories.base import SQLiteRepoBase
from polymeta.database.sqlite.repositories.meta_repo import SQLiteMetaRepo

__all__ = [
    "SQLiteMetaRepo",
    "SQLiteRepoBase",
]
