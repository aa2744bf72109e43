from polymeta.database.interfaces import Database
from polymeta.database.models import AnnotatableOwner, MetaRecord, OwnerRef
from polymeta.database.query import MetaCondition, MetaQuery

__all__ = ["AnnotatableOwner", "Database", "MetaCondition", "MetaQuery", "MetaRecord", "OwnerRef"]
