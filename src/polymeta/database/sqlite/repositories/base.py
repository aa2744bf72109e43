from __future__ import annotations

from datetime import datetime

import pendulum

from polymeta.database.sqlite.session import SQLiteSessionManager


class SQLiteRepoBase:
    def __init__(self, *, sessions: SQLiteSessionManager) -> None:
        self._sessions = sessions

    @staticmethod
    def _now() -> datetime:
        return pendulum.now("UTC")


__all__ = ["SQLiteRepoBase"]
