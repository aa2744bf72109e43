from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel

from polymeta.app.settings import DatabaseConfig, load_database_config
from polymeta.database.factory import build_database
from polymeta.database.interfaces import Database
from polymeta.database.models import AnnotatableOwner, MetaRecord, resolve_owner, values_equal
from polymeta.database.query import MetaQuery
from polymeta.database.repositories import MetaRepo

TConfigModel = TypeVar("TConfigModel", bound=BaseModel)

logger = logging.getLogger(__name__)


class MetadataService:
    """Key/value annotations for any owner, over an injected storage handle.

    Owners are anything exposing ``meta_owner_type`` and ``meta_owner_id``
    (see :class:`~polymeta.database.models.AnnotatableOwner`). Every call
    goes to the store; there is no caching between calls, so
    ``has_meta`` followed by ``save_meta`` is not atomic.
    """

    def __init__(
        self,
        *,
        database: Database | None = None,
        database_config: DatabaseConfig | dict[str, Any] | None = None,
    ):
        if database is None and database_config is None:
            self.database_config = load_database_config()
        else:
            self.database_config = self._validate_config(database_config, DatabaseConfig)

        if database is not None:
            self.database = database
            self._provider = type(database).__name__
        else:
            self.database = build_database(config=self.database_config)
            self._provider = self.database_config.metadata_store.provider

    @staticmethod
    def _validate_config(
        config: Mapping[str, Any] | BaseModel | None,
        model_type: type[TConfigModel],
    ) -> TConfigModel:
        if isinstance(config, model_type):
            return config
        if config is None:
            return model_type()
        return model_type.model_validate(config)

    @property
    def meta_repo(self) -> MetaRepo:
        return self.database.meta_repo

    def for_owner(self, owner: AnnotatableOwner) -> OwnerMetadata:
        """Bind ``owner`` so the metadata operations can be called without it."""
        resolve_owner(owner)
        return OwnerMetadata(self, owner)

    def get_meta_obj(self, owner: AnnotatableOwner, key: str) -> MetaRecord | None:
        owner_type, owner_id = resolve_owner(owner)
        return self.meta_repo.get_meta(owner_type, owner_id, key)

    def save_meta(self, owner: AnnotatableOwner, key: str, value: Any = None) -> MetaRecord:
        """
        Create the meta ``key`` or update it in place.

        An existing record is only written when ``value`` differs from the
        stored one (compared as canonical JSON, so ``1``, ``1.0`` and ``True``
        are all different values).
        """
        owner_type, owner_id = resolve_owner(owner)
        meta = self.meta_repo.get_meta(owner_type, owner_id, key)
        if meta is not None:
            if values_equal(meta.value, value):
                logger.debug("Meta %r unchanged for %s:%s, skipping write", key, owner_type, owner_id)
                return meta
            meta.value = value
            meta = self.meta_repo.update_meta(meta)
            logger.debug("Updated meta %r for %s:%s", key, owner_type, owner_id)
            return meta

        meta = self.meta_repo.create_meta(owner_type=owner_type, owner_id=owner_id, key=key, value=value)
        logger.debug("Created meta %r for %s:%s", key, owner_type, owner_id)
        return meta

    def save_metas(self, owner: AnnotatableOwner, metas: Mapping[str, Any] | None = None) -> None:
        # Each key is saved on its own; a failure part-way leaves earlier keys written.
        if not metas:
            return
        for key, value in metas.items():
            self.save_meta(owner, key, value)

    def get_meta(self, owner: AnnotatableOwner, key: str, default: Any = None) -> Any:
        meta = self.get_meta_obj(owner, key)
        if meta is not None:
            return meta.value
        return default

    def get_metas(self, owner: AnnotatableOwner, keys: Sequence[str] | None = None) -> dict[str, Any]:
        """Return ``{key: value}`` for ``keys``, or for every meta of the owner when no keys are given."""
        owner_type, owner_id = resolve_owner(owner)
        if isinstance(keys, str):
            keys = [keys]
        metas = self.meta_repo.list_metas(owner_type, owner_id, list(keys) if keys else None)
        result: dict[str, Any] = {}
        for meta in metas:
            # first record wins, as get_meta would return it
            result.setdefault(meta.key, meta.value)
        return result

    def has_meta(self, owner: AnnotatableOwner, key: str) -> bool:
        owner_type, owner_id = resolve_owner(owner)
        return self.meta_repo.count_metas(owner_type, owner_id, key) > 0

    def delete_meta(self, owner: AnnotatableOwner, key: str | Sequence[str]) -> int:
        """Delete the meta ``key`` (or every key in a sequence); return the number of rows removed."""
        owner_type, owner_id = resolve_owner(owner)
        keys = [key] if isinstance(key, str) else list(key)
        deleted = self.meta_repo.delete_metas(owner_type, owner_id, keys)
        logger.debug("Deleted %d meta row(s) %s for %s:%s", deleted, keys, owner_type, owner_id)
        return deleted

    def delete_all_meta(self, owner: AnnotatableOwner) -> int:
        owner_type, owner_id = resolve_owner(owner)
        deleted = self.meta_repo.delete_metas(owner_type, owner_id)
        logger.debug("Deleted all %d meta row(s) for %s:%s", deleted, owner_type, owner_id)
        return deleted

    def find_owner_ids(self, query: MetaQuery) -> list[str]:
        """Ids of owners of ``query.owner_type`` that satisfy every condition group of ``query``."""
        return self.meta_repo.find_owner_ids(query)

    def owner_filter(self, query: MetaQuery, owner_id_column: Any) -> Any:
        """SQL WHERE clause restricting an owner table to rows matching ``query``."""
        build = getattr(self.meta_repo, "owner_filter", None)
        if build is None:
            msg = f"{self._provider} store cannot build SQL owner filters"
            raise NotImplementedError(msg)
        return build(query, owner_id_column)

    def health(self) -> dict[str, Any]:
        """Lightweight status check for the metadata store."""
        status: dict[str, Any] = {
            "ok": True,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "db": {
                "provider": self._provider,
                "ok": True,
            },
        }
        try:
            status["counts"] = {"meta": self.meta_repo.count_metas()}
        except Exception as exc:
            logger.warning("Metadata store health check failed: %s", exc)
            status["ok"] = False
            status["db"]["ok"] = False
            status["error"] = str(exc)
        return status

    def close(self) -> None:
        self.database.close()


class OwnerMetadata:
    """The metadata operations of :class:`MetadataService` bound to one owner."""

    def __init__(self, service: MetadataService, owner: AnnotatableOwner) -> None:
        self.service = service
        self.owner = owner

    def get_meta_obj(self, key: str) -> MetaRecord | None:
        return self.service.get_meta_obj(self.owner, key)

    def save_meta(self, key: str, value: Any = None) -> MetaRecord:
        return self.service.save_meta(self.owner, key, value)

    def save_metas(self, metas: Mapping[str, Any] | None = None) -> None:
        self.service.save_metas(self.owner, metas)

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.service.get_meta(self.owner, key, default)

    def get_metas(self, keys: Sequence[str] | None = None) -> dict[str, Any]:
        return self.service.get_metas(self.owner, keys)

    def has_meta(self, key: str) -> bool:
        return self.service.has_meta(self.owner, key)

    def delete_meta(self, key: str | Sequence[str]) -> int:
        return self.service.delete_meta(self.owner, key)

    def delete_all_meta(self) -> int:
        return self.service.delete_all_meta(self.owner)


__all__ = ["MetadataService", "OwnerMetadata"]
