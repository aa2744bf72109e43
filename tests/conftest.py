from collections.abc import Iterator
from pathlib import Path

import pytest

from polymeta.app import MetadataService


def build_service(provider: str, tmp_path: Path, **store_options) -> MetadataService:
    if provider == "sqlite":
        store = {"provider": "sqlite", "dsn": f"sqlite:///{tmp_path / 'polymeta_test.db'}", **store_options}
    else:
        store = {"provider": "inmemory", **store_options}
    return MetadataService(database_config={"metadata_store": store})


@pytest.fixture(params=["inmemory", "sqlite"])
def service(request, tmp_path: Path) -> Iterator[MetadataService]:
    svc = build_service(request.param, tmp_path)
    yield svc
    svc.close()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path) -> None:
    # Never pick up a developer's config/polymeta.json or POLYMETA_DSN.
    monkeypatch.setenv("POLYMETA_CONFIG_PATH", str(tmp_path / "missing-polymeta.json"))
    monkeypatch.delenv("POLYMETA_DSN", raising=False)
