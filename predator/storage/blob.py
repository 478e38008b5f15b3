"""String-keyed blob stores shared between sessions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, MutableMapping, Protocol
from urllib.parse import quote, unquote

DEFAULT_STORE_DIR = Path.home() / ".cache" / "predator"
_SUFFIX = ".blob"


class BlobStore(Protocol):
    """Minimal key-value contract consumed by snapshots and model lookup."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def list_keys(self) -> List[str]: ...


class MemoryBlobStore:
    """Process-local store backed by a dict."""

    def __init__(self, data: MutableMapping[str, str] | None = None) -> None:
        self._data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self) -> List[str]:
        return sorted(self._data)


def resolve_store_dir(root: str | Path | None = None) -> Path:
    """Resolve the effective directory for :class:`DirectoryBlobStore`."""

    base = Path(root or os.environ.get("PREDATOR_STORE_DIR") or DEFAULT_STORE_DIR)
    base.mkdir(parents=True, exist_ok=True)
    return base


class DirectoryBlobStore:
    """One file per key under a root directory; last writer wins."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = resolve_store_dir(root)

    def _path(self, key: str) -> Path:
        return self.root / (quote(key, safe="") + _SUFFIX)

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(str(value), encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def list_keys(self) -> List[str]:
        return sorted(
            unquote(path.name[: -len(_SUFFIX)])
            for path in self.root.iterdir()
            if path.name.endswith(_SUFFIX)
        )


__all__ = ["BlobStore", "DirectoryBlobStore", "MemoryBlobStore", "resolve_store_dir"]
