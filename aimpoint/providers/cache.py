from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    etag: str
    expires_at: float

    @property
    def ttl_seconds(self) -> int:
        remaining = int(self.expires_at - time.time())
        return max(0, remaining)

    def is_expired(self) -> bool:
        return time.time() >= self.expires_at


class ProviderCache:
    """Thread-safe in-memory TTL cache for provider lookups."""

    def __init__(self, name: str, default_ttl: int, max_entries: int = 10_000) -> None:
        self._name = name
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._lock = threading.Lock()
        self._memory: Dict[str, CacheEntry] = {}

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        with self._lock:
            return len(self._memory)

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._memory.get(key)
            if not entry:
                return None
            if entry.is_expired():
                del self._memory[key]
                return None
            return entry

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        etag: Optional[str] = None,
    ) -> CacheEntry:
        ttl = ttl or self._default_ttl
        entry = CacheEntry(
            value=value, etag=etag or _hash_value(value), expires_at=time.time() + ttl
        )
        with self._lock:
            if key not in self._memory and len(self._memory) >= self._max_entries:
                self._evict_locked()
            self._memory[key] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._memory.clear()

    def _evict_locked(self) -> None:
        expired = [k for k, e in self._memory.items() if e.is_expired()]
        for key in expired:
            del self._memory[key]
        if len(self._memory) >= self._max_entries:
            self._memory.pop(next(iter(self._memory)))


def _hash_value(value: Any) -> str:
    serialized = json.dumps(value, sort_keys=True, separators=(",", ":")).encode()
    return hashlib.sha256(serialized).hexdigest()


__all__ = ["CacheEntry", "ProviderCache"]
