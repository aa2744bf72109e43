from polymeta.app.mixin import HasMetadata
from polymeta.app.service import MetadataService, OwnerMetadata
from polymeta.app.settings import (
    DatabaseConfig,
    MetadataStoreConfig,
    load_database_config,
    resolve_polymeta_config_path,
)

__all__ = [
    "DatabaseConfig",
    "HasMetadata",
    "MetadataService",
    "MetadataStoreConfig",
    "OwnerMetadata",
    "load_database_config",
    "resolve_polymeta_config_path",
]
