from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from blooddash.core.config import get_settings


@dataclass
class Entry:
    value: Any
    stored_at: float


class ViewCache:
    """
    Cached view payloads keyed by path ("/", "/dashboard:<center_id>", ...).

    Mutating actions call revalidate_path() so the next read recomputes.
    Entries also expire after ttl seconds.

    Every invalidation bumps the key's generation; a value computed across
    an invalidation is returned to its caller but never stored.
    """

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = float(ttl_seconds)
        self._lock = threading.Lock()
        self._entries: Dict[str, Entry] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0  # bumped by clear() and layout invalidation

    def _generation(self, key: str) -> tuple:
        return (self._epoch, self._generations.get(key, 0))

    def _bump(self, key: str) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        now = time.time()
        with self._lock:
            e = self._entries.get(key)
            if e is not None and now - e.stored_at < self.ttl_seconds:
                return e.value
            generation = self._generation(key)

        value = compute()
        with self._lock:
            if self._generation(key) == generation:
                self._entries[key] = Entry(value=value, stored_at=now)
        return value

    def invalidate(self, path: str, layout: bool = False) -> None:
        """
        layout=True drops the path and everything nested below it.
        """
        with self._lock:
            if not layout:
                self._entries.pop(path, None)
                self._bump(path)
                return
            # nested keys may still be computing without an entry
            self._epoch += 1
            for k in list(self._entries):
                if path == "/" or k == path or k.startswith(path + ":") or k.startswith(path + "/"):
                    self._entries.pop(k, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._epoch += 1


view_cache = ViewCache(ttl_seconds=get_settings().view_cache_ttl_seconds)


def revalidate_path(path: str, layout: bool = False) -> None:
    view_cache.invalidate(path, layout=layout)
