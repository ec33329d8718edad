"""Key/value backends for the session store.

Values are JSON documents.  Both backends hand out fresh copies on
every read, so callers can never mutate stored state in place.

The file backend keeps one JSON file per key under a directory.
File names combine the key's prefix (text before the first ``:``)
with the MD5 hex digest of the full key; the key itself is stored
inside the document so prefix scans can filter exactly.
"""

from __future__ import annotations

import hashlib
import json
import os
import pathlib
from typing import Any, Protocol

from script_sentinel.utils import errors, logger

log = logger.create_logger("StoreBackend")


class KeyValueBackend(Protocol):
    """Minimal storage contract used by ``SessionStore``."""

    def get(self, key: str) -> dict[str, Any] | None: ...

    def put(self, key: str, value: dict[str, Any]) -> None: ...

    def contains(self, key: str) -> bool: ...

    def scan(self, prefix: str) -> list[tuple[str, dict[str, Any]]]: ...


class MemoryBackend:
    """Process-local backend holding serialized documents in a dict."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def put(self, key: str, value: dict[str, Any]) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise errors.StorageError(f"Value for {key!r} is not JSON-serializable: {exc}") from exc

    def contains(self, key: str) -> bool:
        return key in self._data

    def scan(self, prefix: str) -> list[tuple[str, dict[str, Any]]]:
        return [(k, json.loads(v)) for k, v in self._data.items() if k.startswith(prefix)]


class JsonFileBackend:
    """Directory of JSON documents, one file per key."""

    def __init__(self, directory: str | pathlib.Path) -> None:
        self._dir = pathlib.Path(directory)

    def _path(self, key: str) -> pathlib.Path:
        head = key.split(":", 1)[0] or "entry"
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self._dir / f"{head}-{digest}.json"

    def _read(self, path: pathlib.Path) -> dict[str, Any]:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise errors.StorageError(f"Failed to read {path.name}: {exc}") from exc

    def get(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        return self._read(path).get("value")

    def put(self, key: str, value: dict[str, Any]) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps({"key": key, "value": value}), encoding="utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            raise errors.StorageError(f"Failed to write {key!r}: {exc}") from exc

    def contains(self, key: str) -> bool:
        return self._path(key).exists()

    def scan(self, prefix: str) -> list[tuple[str, dict[str, Any]]]:
        if not self._dir.exists():
            return []
        head = prefix.split(":", 1)[0] or "entry"
        entries: list[tuple[str, dict[str, Any]]] = []
        for path in sorted(self._dir.glob(f"{head}-*.json")):
            document = self._read(path)
            key = document.get("key", "")
            if key.startswith(prefix):
                entries.append((key, document.get("value", {})))
        log.debug("Scanned file store", {"prefix": prefix, "matches": len(entries)})
        return entries
