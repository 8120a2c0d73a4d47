# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md
from __future__ import annotations

import json, time, threading
from collections import OrderedDict
from typing import Any, List, Optional, Protocol

from ..utils import config as CFG
from . import kv

# ---------------- Logger ----------------
from ..utils.moki_logging import get_ctx_logger
log = get_ctx_logger("mokichat.storage(persistor)")


class Persistor(Protocol):
    def get(self, key: str) -> Optional[Any]: ...
    def set(self, key: str, value: Any) -> None: ...
    def has(self, key: str) -> bool: ...
    def delete(self, key: str) -> None: ...
    def clear(self) -> None: ...


class MemoryPersistor:
    """In-process mapping.

    With the defaults (no ``max_entries``, no ``ttl_s``) nothing is ever
    evicted. ``max_entries`` drops the least recently used key, ``ttl_s``
    expires entries on read.
    """

    def __init__(self, max_entries: Optional[int] = None, ttl_s: Optional[float] = None,
                 clock=time.monotonic) -> None:
        self.max_entries = max_entries
        self.ttl_s = ttl_s
        self._clock = clock
        self._data: "OrderedDict[str, tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def _expired(self, stamp: float) -> bool:
        return self.ttl_s is not None and (self._clock() - stamp) >= self.ttl_s

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            rec = self._data.get(str(key))
            if rec is None:
                return None
            if self._expired(rec[1]):
                self._data.pop(str(key), None)
                return None
            self._data.move_to_end(str(key))
            return rec[0]

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[str(key)] = (value, self._clock())
            self._data.move_to_end(str(key))
            if self.max_entries is not None:
                while len(self._data) > self.max_entries:
                    old, _ = self._data.popitem(last=False)
                    log.trace("[MemoryPersistor] evicted %s", old)

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(str(key), None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class LmdbPersistor:
    """JSON values in an LMDB sub-database; survives restarts. Values must be JSON-serialisable."""

    def __init__(self, db_name: Optional[str] = None, ttl_s: Optional[float] = None) -> None:
        self.db_name = db_name or CFG.KV_IDENTITY_DB
        self.ttl_s = ttl_s

    @staticmethod
    def _key(key: str) -> bytes:
        return str(key).encode("utf-8")

    def get(self, key: str) -> Optional[Any]:
        raw = kv.get(self.db_name, self._key(key))
        if raw is None:
            return None
        try:
            rec = json.loads(raw.decode("utf-8"))
        except ValueError:
            log.warning("[LmdbPersistor] corrupted entry for %s, dropping", key)
            kv.delete(self.db_name, self._key(key))
            return None
        if self.ttl_s is not None and time.time() - float(rec.get("ts", 0)) >= self.ttl_s:
            kv.delete(self.db_name, self._key(key))
            return None
        return rec.get("v")

    def set(self, key: str, value: Any) -> None:
        data = json.dumps({"v": value, "ts": time.time()}, separators=(",", ":"))
        kv.put(self.db_name, self._key(key), data.encode("utf-8"))

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        kv.delete(self.db_name, self._key(key))

    def clear(self) -> None:
        kv.clear_db(self.db_name)

    def keys(self, prefix: str = "") -> List[str]:
        return [k.decode("utf-8") for k, _ in kv.iter_prefix(self.db_name, prefix.encode("utf-8"))]


def make_identity_persistor(backend: Optional[str] = None,
                            max_entries: Optional[int] = None,
                            ttl_s: Optional[float] = None) -> Persistor:
    backend = (backend or CFG.IDENTITY_CACHE_BACKEND).lower()
    if max_entries is None:
        max_entries = CFG.IDENTITY_CACHE_MAX_ENTRIES
    if ttl_s is None:
        ttl_s = CFG.IDENTITY_CACHE_TTL_S
    if backend == "lmdb":
        return LmdbPersistor(CFG.KV_IDENTITY_DB, ttl_s=ttl_s)
    if backend != "memory":
        raise ValueError(f"unknown identity cache backend {backend!r}")
    return MemoryPersistor(max_entries=max_entries, ttl_s=ttl_s)
