"""String-keyed persistent stores backing the cache's second tier.

Both stores are synchronous and deliberately dumb: they hold text under a
key and know nothing about records, versions or expiry.
"""
from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The store refused an operation (quota exceeded, storage disabled)."""


class PersistentStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, text: str) -> None: ...  # noqa: A003

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """Dict-backed store with an optional character quota.

    Useful as a stand-in for a browser-style storage area: `quota_chars`
    caps the total size of keys plus values, and `available=False` makes
    every call fail the way disabled storage does.
    """

    def __init__(self, quota_chars: int | None = None, available: bool = True) -> None:
        self._items: dict[str, str] = {}
        self.quota_chars = quota_chars
        self.available = available

    def _check(self) -> None:
        if not self.available:
            raise StorageError("storage unavailable")

    def _used(self, skip: str | None = None) -> int:
        return sum(len(k) + len(v) for k, v in self._items.items() if k != skip)

    def get(self, key: str) -> str | None:
        self._check()
        return self._items.get(key)

    def set(self, key: str, text: str) -> None:  # noqa: A003
        self._check()
        if self.quota_chars is not None:
            if self._used(skip=key) + len(key) + len(text) > self.quota_chars:
                raise StorageError(f"quota exceeded writing {key!r}")
        self._items[key] = text

    def remove(self, key: str) -> None:
        self._check()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        self._check()
        return list(self._items)


class DiskStore:
    """One JSON file per key inside `directory`.

    File names are the MD5 of the key; the original key is kept inside the
    file so that `keys()` can enumerate it.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _key_path(self, key: str) -> Path:
        h = hashlib.md5(key.encode()).hexdigest()
        return self.directory / f"{h}.json"

    def get(self, key: str) -> str | None:
        path = self._key_path(key)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
            return entry["text"]
        except (ValueError, KeyError, TypeError, RecursionError) as exc:
            raise StorageError(f"corrupt store file {path.name}") from exc

    def set(self, key: str, text: str) -> None:  # noqa: A003
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"key": key, "text": text}, ensure_ascii=False)
        self._key_path(key).write_text(payload, encoding="utf-8")

    def remove(self, key: str) -> None:
        self._key_path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        found: list[str] = []
        for f in sorted(self.directory.glob("*.json")):
            try:
                key = json.loads(f.read_text(encoding="utf-8"))["key"]
            except (ValueError, KeyError, TypeError, RecursionError, OSError) as exc:
                logger.warning("Skipping unreadable store file %s — %s", f.name, exc)
                continue
            if not isinstance(key, str):
                logger.warning("Skipping store file %s — key is %r, not a string", f.name, key)
                continue
            found.append(key)
        return found
