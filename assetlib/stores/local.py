"""Key-value blob stores for the single-collection (local) variant.

The caller serializes the full asset collection on every write and parses it
on every read; the store only keeps one string per key.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Protocol

from assetlib.errors import QuotaExceededError, StoreError

STORAGE_KEY = "assetLibrary"


class BlobStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


def _check_capacity(capacity: int | None, value: str) -> None:
    if capacity is not None and len(value) > capacity:
        raise QuotaExceededError(
            "Storage quota exceeded. Please delete some assets.",
            details=f"{len(value)} > {capacity}",
        )


class MemoryBlobStore:
    def __init__(self, capacity: int | None = None) -> None:
        self.capacity = capacity
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_capacity(self.capacity, value)
        self._data[key] = value


class FileBlobStore:
    """Persists every key in one JSON document, written atomically."""

    def __init__(self, path: str | os.PathLike[str], capacity: int | None = None) -> None:
        self.path = Path(path)
        self.capacity = capacity
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StoreError("Error loading assets from storage", details=str(exc)) from exc
        return raw if isinstance(raw, dict) else {}

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        _check_capacity(self.capacity, value)
        with self._lock:
            data = self._read_all()
            data[key] = value
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(data), encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError as exc:
                raise StoreError("Error saving assets to storage", details=str(exc)) from exc
