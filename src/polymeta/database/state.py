from __future__ import annotations

from dataclasses import dataclass, field

from polymeta.database.models import MetaRecord


@dataclass
class DatabaseState:
    meta: dict[str, MetaRecord] = field(default_factory=dict)


__all__ = ["DatabaseState"]
