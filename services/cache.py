from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from threading import RLock
from time import monotonic
from typing import Any, Protocol


class KeyValueCache(Protocol):
    """Interface de cache simple, reutilisable cote FastAPI."""

    def get(self, key: str) -> Any | None:  # noqa: D401
        ...

    def set(self, key: str, value: Any, *, ttl_s: float | None = None) -> None:
        ...


def stable_json_dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def make_key(namespace: str, *parts: str) -> str:
    safe = ":".join(p.replace(":", "_") for p in parts)
    return f"{namespace}:{safe}"


class NullCache:
    """Cache no-op."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, *, ttl_s: float | None = None) -> None:
        return


class InMemoryCache:
    """Cache en memoire thread-safe avec TTL optionnel (payloads de series corrigees)."""

    def __init__(self, max_items: int = 128):
        self._max_items = int(max_items)
        self._lock = RLock()
        # key -> (expires_at_monotonic | None, value)
        self._data: OrderedDict[str, tuple[float | None, Any]] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: str) -> Any | None:
        now = monotonic()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at is not None and now >= expires_at:
                self._data.pop(key, None)
                return None
            # Rafraichit l'ordre LRU
            self._data.move_to_end(key)
            return value

    def set(self, key: str, value: Any, *, ttl_s: float | None = None) -> None:
        expires_at = None
        if ttl_s is not None:
            expires_at = monotonic() + float(ttl_s)
        with self._lock:
            self._data[key] = (expires_at, value)
            self._data.move_to_end(key)
            while len(self._data) > self._max_items:
                self._data.popitem(last=False)


def make_cache_key(*, namespace: str, version: str, payload: Any) -> str:
    """Cree une cle de cache stable.

    payload doit etre JSON-dumpable (ou convertible via default=str).
    """

    blob = stable_json_dumps({"version": version, "payload": payload})
    digest = hashlib.sha256(blob.encode("utf-8")).hexdigest()
    return make_key(namespace, digest)
