# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md
import os, lmdb
from typing import Iterator, Tuple, Optional

from ..utils import config as CFG


_env = None
_env_path: Optional[str] = None
_db_handles = {}


def _ensure_env():
    global _env, _env_path
    if _env is not None and _env_path == CFG.DB_DIR:
        return _env
    if _env is not None:
        close()
    os.makedirs(CFG.DB_DIR, exist_ok=True)
    _env = lmdb.open(CFG.DB_DIR, map_size=int(CFG.LMDB_MAP_SIZE_INIT), max_dbs=4, create=True, lock=True, subdir=True)
    _env_path = CFG.DB_DIR
    return _env


def close() -> None:
    global _env, _env_path
    if _env is not None:
        try:
            _env.close()
        finally:
            _env = None
            _env_path = None
            _db_handles.clear()


def _grow_env_map() -> int:
    env = _ensure_env()
    cur = int(env.info().get("map_size", 0) or 0)
    new = min(max(cur * 2, cur + (cur // 2)), int(CFG.LMDB_MAP_SIZE_MAX))
    if new <= cur:
        return cur
    env.set_mapsize(new)
    return new


def _get_db(name: str):
    env = _ensure_env()
    db = _db_handles.get(name)
    if db is None:
        db = env.open_db(name.encode("utf-8"), create=True)
        _db_handles[name] = db
    return db


def get(name: str, key: bytes) -> Optional[bytes]:
    env = _ensure_env(); db = _get_db(name)
    with env.begin(db=db, write=False) as txn:
        return txn.get(key)


def put(name: str, key: bytes, val: bytes) -> None:
    env = _ensure_env(); db = _get_db(name)
    try:
        with env.begin(db=db, write=True) as txn:
            txn.put(key, val)
    except lmdb.MapFullError:
        _grow_env_map()
        with env.begin(db=db, write=True) as txn:
            txn.put(key, val)


def delete(name: str, key: bytes) -> None:
    env = _ensure_env(); db = _get_db(name)
    with env.begin(db=db, write=True) as txn:
        txn.delete(key)


def clear_db(name: str) -> int:
    env = _ensure_env(); db = _get_db(name)
    with env.begin(db=db, write=True) as txn:
        entries = int(txn.stat(db).get("entries", 0) or 0)
        txn.drop(db, delete=False)
    return entries


def iter_prefix(name: str, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
    env = _ensure_env(); db = _get_db(name)
    def _iter():
        with env.begin(db=db, write=False) as txn:
            with txn.cursor() as cur:
                if not cur.set_range(prefix):
                    return
                while True:
                    k = cur.key()
                    if not k or not k.startswith(prefix):
                        break
                    yield k, cur.value()
                    if not cur.next():
                        break
    return _iter()
