import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field, model_validator

logger = logging.getLogger(__name__)


def normalize_value(v: str) -> str:
    if isinstance(v, str):
        return v.strip().lower()
    return v


Normalize = BeforeValidator(normalize_value)

POLYMETA_CONFIG_ENV = "POLYMETA_CONFIG_PATH"
POLYMETA_CONFIG_DEFAULT = Path("config") / "polymeta.json"
POLYMETA_DSN_ENV = "POLYMETA_DSN"
SQLITE_DSN_DEFAULT = "sqlite:///polymeta.db"


def resolve_polymeta_config_path() -> Path:
    override = os.getenv(POLYMETA_CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return Path(POLYMETA_CONFIG_DEFAULT).expanduser()


def _load_json_file(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        raw = path.read_text(encoding="utf-8")
        return json.loads(raw)
    except Exception as exc:
        logger.warning("Failed to load JSON config from %s: %s", path, exc)
        return None


class MetadataStoreConfig(BaseModel):
    provider: Annotated[Literal["inmemory", "sqlite"], Normalize] = "inmemory"
    dsn: str | None = Field(default=None, description="Database connection string (required for sqlite).")
    table_prefix: str = Field(default="polymeta_", description="Prefix for the meta table name.")
    unique_keys: bool = Field(
        default=False,
        description="Add a unique index on (owner_type, owner_id, key) so concurrent creates cannot duplicate a key.",
    )
    echo: bool = Field(default=False, description="Echo emitted SQL through the SQLAlchemy logger.")

    @model_validator(mode="after")
    def set_provider_defaults(self) -> "MetadataStoreConfig":
        if self.provider == "sqlite" and not self.dsn:
            self.dsn = SQLITE_DSN_DEFAULT
        return self


class DatabaseConfig(BaseModel):
    metadata_store: MetadataStoreConfig = Field(default_factory=MetadataStoreConfig)


def load_database_config_from_file() -> dict[str, Any] | None:
    """
    Load the database section from the JSON config.

    Supported:
    - config/polymeta.json (default)
    - POLYMETA_CONFIG_PATH override
    - either {"database": {...}} or the database object itself
    """
    path = resolve_polymeta_config_path()
    data = _load_json_file(path)
    if data is None:
        return None
    if not isinstance(data, dict):
        logger.warning("polymeta config at %s must be an object", path)
        return None
    section = data.get("database", data)
    if not isinstance(section, dict):
        logger.warning("polymeta config 'database' must be an object")
        return None
    return section


def load_database_config() -> DatabaseConfig:
    """Build the database config from the JSON file, then apply POLYMETA_DSN.

    An unreadable file is ignored with a warning; a file that parses but does
    not validate raises ``pydantic.ValidationError``.
    """
    raw = load_database_config_from_file() or {}
    config = DatabaseConfig.model_validate(raw)

    dsn = os.getenv(POLYMETA_DSN_ENV)
    if dsn:
        store = config.metadata_store.model_copy(update={"provider": "sqlite", "dsn": dsn})
        config = config.model_copy(update={"metadata_store": store})
    return config


__all__ = [
    "DatabaseConfig",
    "MetadataStoreConfig",
    "load_database_config",
    "load_database_config_from_file",
    "resolve_polymeta_config_path",
]
