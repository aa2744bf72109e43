"""Owner filtering by metadata: the ``meta_where`` / ``or_meta_where`` builder."""

from __future__ import annotations

import operator as op
import re
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

from polymeta.database.models import dump_value

Boolean = Literal["and", "or"]

# Comparisons shared by the in-memory engine (on str) and SQLAlchemy (on columns).
COMPARATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": op.eq,
    "!=": op.ne,
    "<>": op.ne,
    "<": op.lt,
    "<=": op.le,
    ">": op.gt,
    ">=": op.ge,
}
LIKE_OPERATORS = frozenset({"like", "not like"})
SUPPORTED_OPERATORS = frozenset(COMPARATORS) | LIKE_OPERATORS


def normalize_operator(token: str) -> str:
    norm = " ".join(str(token).strip().lower().split())
    if norm not in SUPPORTED_OPERATORS:
        msg = f"Unsupported meta comparison operator {token!r}; expected one of {sorted(SUPPORTED_OPERATORS)}"
        raise ValueError(msg)
    return norm


def like_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a SQL LIKE pattern (``%`` and ``_``) into a compiled regex.

    Case is folded for ASCII letters only, like SQLite's LIKE.
    """
    parts: list[str] = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.ASCII | re.DOTALL)


class MetaCondition(BaseModel):
    key: str
    operator: str = "="
    value_json: str
    boolean: Boolean = "and"

    def matches(self, stored_json: str) -> bool:
        """Evaluate the comparison against a stored ``value_json`` text."""
        if self.operator in LIKE_OPERATORS:
            found = like_to_regex(self.value_json).fullmatch(stored_json) is not None
            return found if self.operator == "like" else not found
        return bool(COMPARATORS[self.operator](stored_json, self.value_json))


class MetaQuery(BaseModel):
    """Chainable filter over owners of one type.

    Each condition reads "the owner has at least one meta record with
    ``key`` whose stored value compares true against ``value``"::

        query = MetaQuery(owner_type="user").where("hair_color", "brown").or_where("hair_color", "pink")
        ids = service.find_owner_ids(query)

    ``value`` is serialized exactly as stored values are, so comparisons run
    on JSON text (a string ``"red"`` compares as ``'"red"'``).
    """

    owner_type: str
    conditions: list[MetaCondition] = Field(default_factory=list)

    def where(self, key: str, value: Any, *, operator: str = "=") -> MetaQuery:
        return self._add(key, value, operator=operator, boolean="and")

    def or_where(self, key: str, value: Any, *, operator: str = "=") -> MetaQuery:
        return self._add(key, value, operator=operator, boolean="or")

    def _add(self, key: str, value: Any, *, operator: str, boolean: Boolean) -> MetaQuery:
        if not isinstance(key, str) or not key:
            msg = f"Meta key must be a non-empty string, got {key!r}"
            raise ValueError(msg)
        self.conditions.append(
            MetaCondition(
                key=key,
                operator=normalize_operator(operator),
                value_json=dump_value(value),
                boolean=boolean,
            )
        )
        return self

    def groups(self) -> list[list[MetaCondition]]:
        """Split the chain into OR-groups of AND-ed conditions (SQL precedence)."""
        groups: list[list[MetaCondition]] = []
        for cond in self.conditions:
            if not groups or cond.boolean == "or":
                groups.append([cond])
            else:
                groups[-1].append(cond)
        return groups


__all__ = [
    "COMPARATORS",
    "LIKE_OPERATORS",
    "SUPPORTED_OPERATORS",
    "MetaCondition",
    "MetaQuery",
    "like_to_regex",
    "normalize_operator",
]
