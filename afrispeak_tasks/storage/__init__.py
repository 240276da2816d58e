from afrispeak_tasks.storage.base import StorageBackend
from afrispeak_tasks.storage.disk import DiskStorage

__all__ = [
    "StorageBackend",
    "DiskStorage",
]
