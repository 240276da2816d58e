from __future__ import annotations

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Object storage for uploaded media (ASR images).

    Keys are ``/``-separated relative paths.  Objects are never
    replaced: writing to an existing key is an error.
    """

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """Store *data* under *key*, failing if *key* is taken."""
        ...

    @abstractmethod
    def read(self, key: str) -> bytes: ...

    @abstractmethod
    def list_keys(self, prefix: str) -> list[str]:
        """Return every stored key under *prefix*, sorted."""
        ...

    @abstractmethod
    def exists(self, key: str) -> bool: ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*; a missing key is ignored."""
        ...

    @abstractmethod
    def resolve_uri(self, key: str) -> str:
        """Return the public URL under which *key* can be fetched."""
        ...
