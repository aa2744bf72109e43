from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import String, and_, cast, literal_column, or_, true
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import func, select

from polymeta.database.models import MetaRecord, dump_value, load_value
from polymeta.database.query import COMPARATORS, MetaCondition, MetaQuery
from polymeta.database.repositories.meta import MetaRepo
from polymeta.database.sqlite.repositories.base import SQLiteRepoBase
from polymeta.database.sqlite.session import SQLiteSessionManager

# Insertion order; breaks created_at ties between rows written in the same instant.
_ROWID = literal_column("rowid")


class SQLiteMetaRepo(SQLiteRepoBase, MetaRepo):
    def __init__(
        self,
        *,
        meta_model: type[Any],
        sessions: SQLiteSessionManager,
    ) -> None:
        super().__init__(sessions=sessions)
        self._meta_model = meta_model

    def _owner_where(self, owner_type: str | None, owner_id: str | None) -> list[Any]:
        model = self._meta_model
        clauses: list[Any] = []
        if owner_type is not None:
            clauses.append(model.owner_type == owner_type)
        if owner_id is not None:
            clauses.append(model.owner_id == owner_id)
        return clauses

    def create_meta(self, *, owner_type: str, owner_id: str, key: str, value: Any) -> MetaRecord:
        now = self._now()
        row = self._meta_model(
            owner_type=owner_type,
            owner_id=owner_id,
            key=key,
            value_json=dump_value(value),
            created_at=now,
            updated_at=now,
        )
        with self._sessions.session() as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.to_record()

    def get_meta(self, owner_type: str, owner_id: str, key: str) -> MetaRecord | None:
        model = self._meta_model
        stmt = (
            select(model)
            .where(*self._owner_where(owner_type, owner_id), model.key == key)
            .order_by(model.created_at, _ROWID)
            .limit(1)
        )
        with self._sessions.session() as session:
            row = session.exec(stmt).first()
            return row.to_record() if row is not None else None

    def list_metas(self, owner_type: str, owner_id: str, keys: Sequence[str] | None = None) -> list[MetaRecord]:
        model = self._meta_model
        stmt = select(model).where(*self._owner_where(owner_type, owner_id))
        if keys is not None:
            stmt = stmt.where(model.key.in_(list(keys)))
        stmt = stmt.order_by(model.created_at, _ROWID)
        with self._sessions.session() as session:
            return [row.to_record() for row in session.exec(stmt).all()]

    def update_meta(self, record: MetaRecord) -> MetaRecord:
        payload = dump_value(record.value)
        now = self._now()
        with self._sessions.session() as session:
            row = session.get(self._meta_model, record.id)
            if row is None:
                msg = f"Meta record {record.id} does not exist"
                raise KeyError(msg)
            row.value_json = payload
            row.updated_at = now
            session.add(row)
            session.commit()
        record.value = load_value(payload)
        record.updated_at = now
        return record

    def delete_metas(self, owner_type: str, owner_id: str, keys: Sequence[str] | None = None) -> int:
        model = self._meta_model
        stmt = select(model).where(*self._owner_where(owner_type, owner_id))
        if keys is not None:
            stmt = stmt.where(model.key.in_(list(keys)))
        with self._sessions.session() as session:
            rows = session.exec(stmt).all()
            for row in rows:
                session.delete(row)
            session.commit()
            return len(rows)

    def count_metas(self, owner_type: str | None = None, owner_id: str | None = None, key: str | None = None) -> int:
        model = self._meta_model
        stmt = select(func.count(model.id)).where(*self._owner_where(owner_type, owner_id))
        if key is not None:
            stmt = stmt.where(model.key == key)
        with self._sessions.session() as session:
            return int(session.exec(stmt).one())

    def find_owner_ids(self, query: MetaQuery) -> list[str]:
        outer = aliased(self._meta_model, name="owner_meta")
        stmt = (
            select(outer.owner_id)
            .where(outer.owner_type == query.owner_type, self.owner_filter(query, outer.owner_id))
            .distinct()
            .order_by(outer.owner_id)
        )
        with self._sessions.session() as session:
            return list(session.exec(stmt).all())

    def owner_filter(self, query: MetaQuery, owner_id_column: Any) -> ColumnElement[bool]:
        """Build a WHERE clause for an owner table from a :class:`MetaQuery`.

        Each condition becomes a correlated ``EXISTS`` sub-query against the
        meta table, so matching owners are never multiplied::

            stmt = select(Article).where(repo.owner_filter(query, Article.id))

        Conditions are grouped with SQL precedence: ``a AND b OR c`` is
        ``(a AND b) OR c``. A query with no conditions matches every row.
        """
        groups = query.groups()
        if not groups:
            return true()
        return or_(
            *[
                and_(*[self._exists_clause(query.owner_type, cond, owner_id_column) for cond in group])
                for group in groups
            ]
        )

    def _exists_clause(self, owner_type: str, cond: MetaCondition, owner_id_column: Any) -> ColumnElement[bool]:
        meta = aliased(self._meta_model)
        value_col = meta.value_json
        if cond.operator == "like":
            comparison = value_col.like(cond.value_json)
        elif cond.operator == "not like":
            comparison = value_col.not_like(cond.value_json)
        else:
            comparison = COMPARATORS[cond.operator](value_col, cond.value_json)
        return (
            select(meta.id)
            .where(
                meta.owner_type == owner_type,
                meta.owner_id == cast(owner_id_column, String),
                meta.key == cond.key,
                comparison,
            )
            .exists()
        )


__all__ = ["SQLiteMetaRepo"]
