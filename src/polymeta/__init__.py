from polymeta.app import DatabaseConfig, HasMetadata, MetadataService, MetadataStoreConfig, OwnerMetadata
from polymeta.database import AnnotatableOwner, MetaQuery, MetaRecord, OwnerRef

__all__ = [
    "AnnotatableOwner",
    "DatabaseConfig",
    "HasMetadata",
    "MetaQuery",
    "MetaRecord",
    "MetadataService",
    "MetadataStoreConfig",
    "OwnerMetadata",
    "OwnerRef",
]
