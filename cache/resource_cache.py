"""Two-tier resource cache with TTL support.

The fast tier is a plain dict that lives as long as the process. The
persistent tier is any `PersistentStore`; records there are JSON text
`{"value": ..., "storedAt": <ms>}` under `<namespace>_<version>_<key>`, so
bumping the version orphans everything written before it.

The persistent tier is best-effort. Every call into it goes through
`_attempt`, which turns exceptions into an `_Outcome`; callers inspect
`ok`, log the error at DEBUG and carry on as if the tier held nothing.
`get`, `set`, `invalidate` and `clear_all` never raise.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple

from cache.storage import PersistentStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5 * 60 * 1000

# Failures the persistent tier is allowed to produce without surfacing them
_STORE_ERRORS = (StorageError, OSError, ValueError, TypeError, KeyError, RecursionError)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: int


@dataclass
class CacheStats:
    memory_hits: int = 0
    persistent_hits: int = 0
    misses: int = 0
    writes: int = 0
    persist_failures: int = 0


class _Outcome(NamedTuple):
    ok: bool
    value: Any = None
    error: Exception | None = None


def _attempt(fn: Callable[..., Any], *args: Any) -> _Outcome:
    try:
        return _Outcome(True, fn(*args))
    except _STORE_ERRORS as exc:
        return _Outcome(False, error=exc)


def _encode_record(entry: CacheEntry) -> str:
    return json.dumps({"value": entry.value, "storedAt": entry.stored_at}, ensure_ascii=False)


def _decode_record(text: str) -> CacheEntry:
    """Parse a persisted record; raises ValueError if it is not one."""
    raw = json.loads(text)
    if not isinstance(raw, dict) or "value" not in raw:
        raise ValueError("record is not an object with a 'value' field")
    stored_at = raw.get("storedAt")
    if isinstance(stored_at, bool) or not isinstance(stored_at, (int, float)):
        raise ValueError(f"record has invalid storedAt {stored_at!r}")
    return CacheEntry(raw["value"], int(stored_at))


class ResourceCache:
    """Key → value cache with an in-process tier over a persistent tier.

    Args:
        store: Persistent tier. ``None`` runs with the in-process tier only.
        namespace: Prefix shared by every persistent key this cache writes.
        version: Cache format version, embedded after the namespace.
        ttl_ms: Entry lifetime in milliseconds.
        clock: Returns "now" in milliseconds since the epoch.
    """

    def __init__(
        self,
        store: PersistentStore | None = None,
        *,
        namespace: str = "portfolio",
        version: str = "v1",
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        if not namespace or not version:
            raise ValueError("namespace and version must be non-empty")
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        self.store = store
        self.namespace = namespace
        self.version = version
        self.ttl_ms = ttl_ms
        self._clock = clock or _wall_clock_ms
        self._memory: dict[str, CacheEntry] = {}
        self.stats = CacheStats()

    def persistent_key(self, key: str) -> str:
        return f"{self.namespace}_{self.version}_{key}"

    def _is_live(self, entry: CacheEntry, now: int) -> bool:
        return now - entry.stored_at < self.ttl_ms

    def _discard(self, outcome: _Outcome, action: str, key: str) -> None:
        if not outcome.ok:
            logger.debug("[CACHE] Persistent %s failed for %s: %s", action, key, outcome.error)

    def get(self, key: str) -> Any | None:
        """Return the cached value for `key`, or None if absent / expired."""
        now = self._clock()

        entry = self._memory.get(key)
        if entry is not None:
            if self._is_live(entry, now):
                self.stats.memory_hits += 1
                return entry.value
            del self._memory[key]

        entry = self._read_persistent(key)
        if entry is not None:
            if self._is_live(entry, now):
                self._memory[key] = entry
                self.stats.persistent_hits += 1
                return entry.value
            logger.debug("[CACHE] Expired: %s", key)
            self._discard(_attempt(self.store.remove, self.persistent_key(key)), "remove", key)

        self.stats.misses += 1
        return None

    def _read_persistent(self, key: str) -> CacheEntry | None:
        if self.store is None:
            return None
        pkey = self.persistent_key(key)
        read = _attempt(self.store.get, pkey)
        if not read.ok:
            self._discard(read, "read", key)
            return None
        if read.value is None:
            return None
        decoded = _attempt(_decode_record, read.value)
        if not decoded.ok:
            logger.warning("[CACHE] Corrupt record for %s — %s", key, decoded.error)
            self._discard(_attempt(self.store.remove, pkey), "remove", key)
            return None
        return decoded.value

    def set(self, key: str, value: Any) -> None:  # noqa: A003
        """Store `value` in both tiers; only the in-process write is guaranteed."""
        entry = CacheEntry(value, self._clock())
        self._memory[key] = entry
        self.stats.writes += 1
        if self.store is None:
            return
        encoded = _attempt(_encode_record, entry)
        if encoded.ok:
            written = _attempt(self.store.set, self.persistent_key(key), encoded.value)
        else:
            written = encoded
        if not written.ok:
            self.stats.persist_failures += 1
            self._discard(written, "write", key)

    def invalidate(self, key: str) -> None:
        """Remove a specific entry from both tiers."""
        self._memory.pop(key, None)
        if self.store is not None:
            self._discard(_attempt(self.store.remove, self.persistent_key(key)), "remove", key)

    def clear_memory(self) -> None:
        self._memory.clear()

    def clear_all(self) -> None:
        """Empty the in-process tier and drop every namespaced persistent key.

        All versions under the namespace go, not only the current one.
        """
        self._memory.clear()
        if self.store is not None:
            prefix = f"{self.namespace}_"
            listed = _attempt(self.store.keys)
            if listed.ok:
                for pkey in listed.value:
                    if isinstance(pkey, str) and pkey.startswith(prefix):
                        self._discard(_attempt(self.store.remove, pkey), "remove", pkey)
            else:
                self._discard(listed, "enumerate", prefix)
        logger.info("[CACHE] Cleared")