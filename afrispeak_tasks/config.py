from __future__ import annotations

from typing import Any

from afrispeak_tasks.storage.base import StorageBackend
from afrispeak_tasks.store.base import TaskStore


class _Registry[T]:
    """Provider name → backend class, filled on first use.

    Backends are imported lazily so that, for example, the SQL store's
    dependencies are only loaded when a SQL provider is requested.
    Classes exposing ``from_config`` are built with it; others get the
    config dict as keyword arguments.
    """

    def __init__(self, kind: str) -> None:
        self._kind = kind
        self._backends: dict[str, type[T]] | None = None

    def _builtins(self) -> dict[str, type[T]]:
        return {}

    @property
    def backends(self) -> dict[str, type[T]]:
        if self._backends is None:
            self._backends = self._builtins()
        return self._backends

    def register(self, name: str, cls: type[T]) -> None:
        self.backends[name] = cls

    def available(self) -> list[str]:
        return list(self.backends)

    def build(self, provider: str, options: dict[str, Any]) -> T:
        try:
            cls = self.backends[provider]
        except KeyError:
            raise ValueError(
                f"Unknown {self._kind} provider '{provider}'. "
                f"Available: {self.available()}"
            ) from None
        from_config = getattr(cls, "from_config", None)
        if from_config is not None:
            return from_config(options)
        return cls(**options)


class _StorageRegistry(_Registry[StorageBackend]):
    def _builtins(self) -> dict[str, type[StorageBackend]]:
        from afrispeak_tasks.storage.disk import DiskStorage

        return {"disk": DiskStorage}


class _StoreRegistry(_Registry[TaskStore]):
    def _builtins(self) -> dict[str, type[TaskStore]]:
        from afrispeak_tasks.store.memory import InMemoryTaskStore
        from afrispeak_tasks.store.sql import SqlTaskStore

        return {
            "memory": InMemoryTaskStore,
            "sql": SqlTaskStore,
            "postgres": SqlTaskStore,
        }


storage_registry = _StorageRegistry("storage")
store_registry = _StoreRegistry("store")


def parse_config(config: dict[str, Any]) -> tuple[StorageBackend, TaskStore]:
    """Build ``(storage, store)`` from a config dict.

    Shape::

        {
            "storage": {
                "provider": "disk",
                "config": {"base_path": "./data/storage"},
            },
            "store": {"provider": "postgres", "config": {"host": "localhost"}},
        }

    Disk storage needs ``base_path``.  The store defaults to ``memory``.
    """
    storage_section = config.get("storage") or {}
    store_section = config.get("store") or {}

    storage_provider = storage_section.get("provider", "disk")
    storage_options = storage_section.get("config", {})
    if storage_provider == "disk" and "base_path" not in storage_options:
        raise ValueError(
            "Missing 'storage.config.base_path'. "
            'Provide at least {"storage": {"config": {"base_path": "./data"}}}.'
        )

    storage = storage_registry.build(storage_provider, storage_options)
    store = store_registry.build(
        store_section.get("provider", "memory"),
        store_section.get("config", {}),
    )
    return storage, store
