# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md
from __future__ import annotations

from typing import Any, Optional

from ..errors import IdentityNotFound
from ..provider.http import Provider, RpcMethods
from ..storage.persistor import Persistor, make_identity_persistor
from ..utils.helpers import canon_address
from .types import IdentityRecord

# ---------------- Logger ----------------
from ..utils.moki_logging import get_ctx_logger
log = get_ctx_logger("mokichat.messaging(directory)")


class IdentityDirectory:
    """Username / address -> IdentityRecord, with a write-through cache.

    Concurrent misses for the same key may both reach the relay; the last
    write wins in the cache.
    """

    def __init__(self, provider: Provider, persistor: Optional[Persistor] = None) -> None:
        self.provider = provider
        self.persistor = persistor if persistor is not None else make_identity_persistor()

    def _resolve(self, cache_key: str, method: RpcMethods, param: str) -> IdentityRecord:
        cached = self.persistor.get(cache_key)
        if cached is not None:
            log.debug("[directory] cache hit %s", cache_key, extra={"rpc": method.value})
            return IdentityRecord.from_dict(cached)

        log.debug("[directory] cache miss %s", cache_key, extra={"rpc": method.value})
        result: Any = self.provider.request(method, [param])
        if result is None:
            raise IdentityNotFound(param)
        record = IdentityRecord.from_dict(result)
        self.persistor.set(cache_key, record.to_dict())
        return record

    def resolve_by_username(self, username: str) -> IdentityRecord:
        return self._resolve(f"user:{username}", RpcMethods.MOKI_GET_IDENTITY_BY_USERNAME, username)

    def resolve_by_address(self, address: str) -> IdentityRecord:
        addr = canon_address(address)
        return self._resolve(f"addr:{addr}", RpcMethods.MOKI_GET_IDENTITY, addr)
