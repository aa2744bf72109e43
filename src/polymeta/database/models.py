from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import pendulum
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def dump_value(value: Any) -> str:
    """Serialize a meta value to the JSON text stored in the ``value`` column."""
    return json.dumps(value, ensure_ascii=False)


def load_value(raw: str | None) -> Any:
    """Deserialize stored JSON text back into a meta value."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Failed to parse meta value JSON, returning raw text: %s", e)
        return raw


def canonical_value(value: Any) -> str:
    # Round-trip first so non-string dict keys are coerced the way they are stored,
    # then sort so key order never counts as a change.
    return json.dumps(json.loads(dump_value(value)), ensure_ascii=False, sort_keys=True)


def values_equal(left: Any, right: Any) -> bool:
    return canonical_value(left) == canonical_value(right)


class MetaRecord(BaseModel):
    """One key/value annotation attached to one owner."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_type: str
    owner_id: str
    key: str
    value: Any = None
    created_at: datetime = Field(default_factory=lambda: pendulum.now("UTC"))
    updated_at: datetime = Field(default_factory=lambda: pendulum.now("UTC"))


@runtime_checkable
class AnnotatableOwner(Protocol):
    """Anything that can carry metadata: a type discriminator plus an instance id."""

    @property
    def meta_owner_type(self) -> str: ...

    @property
    def meta_owner_id(self) -> Any: ...


class OwnerRef(BaseModel):
    """Plain owner reference, for callers that have no owner object at hand."""

    owner_type: str
    owner_id: str | int

    @property
    def meta_owner_type(self) -> str:
        return self.owner_type

    @property
    def meta_owner_id(self) -> str | int:
        return self.owner_id


def resolve_owner(owner: AnnotatableOwner) -> tuple[str, str]:
    """Return the ``(owner_type, owner_id)`` scope of an owner."""
    owner_type = owner.meta_owner_type
    owner_id = owner.meta_owner_id
    if not owner_type:
        msg = f"Owner {owner!r} has an empty meta_owner_type"
        raise ValueError(msg)
    if owner_id is None:
        msg = f"Owner {owner!r} has no identifier; persist it before attaching metadata"
        raise ValueError(msg)
    return str(owner_type), str(owner_id)


__all__ = [
    "AnnotatableOwner",
    "MetaRecord",
    "OwnerRef",
    "canonical_value",
    "dump_value",
    "load_value",
    "resolve_owner",
    "values_equal",
]
