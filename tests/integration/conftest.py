from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from afrispeak_tasks.identity import StaticIdentity
from afrispeak_tasks.importer import BulkTaskImporter
from afrispeak_tasks.storage.disk import DiskStorage
from afrispeak_tasks.store.sql import SqlTaskStore

_HERE = Path(__file__).parent


def pytest_collection_modifyitems(items: list, config) -> None:  # noqa: ANN001
    """Auto-mark every test in the integration directory."""
    marker = pytest.mark.integration
    for item in items:
        if _HERE in item.path.parents:
            item.add_marker(marker)


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("POSTGRES_HOST", "localhost")
        self.port = int(os.getenv("POSTGRES_PORT", "5432"))
        self.database = os.getenv("POSTGRES_DB", "afrispeak_test")
        self.user = os.getenv("POSTGRES_USER", "postgres")
        self.password = os.getenv("POSTGRES_PASSWORD", "postgres")


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings()


@pytest.fixture()
async def pg_store(settings: Settings) -> AsyncGenerator[SqlTaskStore]:
    """Create a Postgres-backed SqlTaskStore with a clean slate for each test."""
    store = SqlTaskStore.from_config(
        {
            "host": settings.host,
            "port": settings.port,
            "database": settings.database,
            "user": settings.user,
            "password": settings.password,
        }
    )
    await store.init()
    await store.reset()

    yield store

    await store.reset()
    await store.close()


@pytest.fixture()
def pg_importer(tmp_path: Path, pg_store: SqlTaskStore) -> BulkTaskImporter:
    storage = DiskStorage(
        base_path=str(tmp_path / "storage"),
        public_base_url="https://cdn.example.com/task-images",
    )
    return BulkTaskImporter(store=pg_store, storage=storage, identity=StaticIdentity("admin-1"))
