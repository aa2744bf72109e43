from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from polymeta.database.query import MetaQuery

if TYPE_CHECKING:
    from polymeta.app.service import MetadataService, OwnerMetadata


class HasMetadata:
    """Mixin that makes a class an annotatable owner.

    The type discriminator is ``__meta_type__`` when set, else the class
    name; the instance id is read from the attribute named by
    ``__meta_id_attr__``::

        class Article(HasMetadata, SQLModel, table=True):
            __meta_type__ = "article"
            id: int | None = Field(default=None, primary_key=True)

        article.metas(service).save_meta("color", "red")
        query = Article.meta_where("color", "red")
        stmt = select(Article).where(service.owner_filter(query, Article.id))
    """

    __meta_type__: ClassVar[str | None] = None
    __meta_id_attr__: ClassVar[str] = "id"

    @classmethod
    def meta_type_name(cls) -> str:
        return cls.__meta_type__ or cls.__name__

    @property
    def meta_owner_type(self) -> str:
        return type(self).meta_type_name()

    @property
    def meta_owner_id(self) -> Any:
        return getattr(self, type(self).__meta_id_attr__, None)

    def metas(self, service: MetadataService) -> OwnerMetadata:
        return service.for_owner(self)

    @classmethod
    def meta_query(cls) -> MetaQuery:
        return MetaQuery(owner_type=cls.meta_type_name())

    @classmethod
    def meta_where(cls, key: str, value: Any, *, operator: str = "=") -> MetaQuery:
        return cls.meta_query().where(key, value, operator=operator)

    @classmethod
    def or_meta_where(cls, key: str, value: Any, *, operator: str = "=") -> MetaQuery:
        return cls.meta_query().or_where(key, value, operator=operator)


__all__ = ["HasMetadata"]
