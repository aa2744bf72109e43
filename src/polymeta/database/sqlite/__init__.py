from polymeta.database.sqlite.sqlite import SQLiteStore

__all__ = ["SQLiteStore"]
