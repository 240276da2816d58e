from __future__ import annotations

from pathlib import Path

from afrispeak_tasks.storage.base import StorageBackend


class DiskStorage(StorageBackend):
    """Stores objects as files under *base_path*.

    When *public_base_url* is given (the URL a web server exposes
    *base_path* under), :meth:`resolve_uri` returns
    ``{public_base_url}/{key}``; otherwise a ``file://`` URI.

    Keys must stay inside *base_path*: an absolute key or one with an
    empty, ``.`` or ``..`` segment raises :class:`ValueError`.
    """

    def __init__(self, base_path: str, public_base_url: str | None = None) -> None:
        self._root = Path(base_path)
        self._root.mkdir(parents=True, exist_ok=True)
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _path(self, key: str) -> Path:
        parts = key.split("/")
        if any(part in ("", ".", "..") for part in parts):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._root.joinpath(*parts)

    def write(self, key: str, data: bytes) -> None:
        target = self._path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to replace an existing object
        try:
            with target.open("xb") as f:
                f.write(data)
        except FileExistsError:
            raise FileExistsError(f"Object already exists: {key}") from None

    def read(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def list_keys(self, prefix: str) -> list[str]:
        start = self._path(prefix)
        if start.is_file():
            return [prefix]
        if not start.is_dir():
            return []
        return sorted(
            p.relative_to(self._root).as_posix() for p in start.rglob("*") if p.is_file()
        )

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def resolve_uri(self, key: str) -> str:
        path = self._path(key)
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return path.resolve().as_uri()
