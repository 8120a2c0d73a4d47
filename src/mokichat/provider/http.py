# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: JSON-RPC-2.0
from __future__ import annotations

import json, threading, time, itertools
import urllib.error
import urllib.request
from enum import Enum
from typing import Any, List, Optional, Protocol

from ..errors import TransportError
from ..utils import config as CFG

# ---------------- Logger ----------------
from ..utils.moki_logging import get_ctx_logger
log = get_ctx_logger("mokichat.provider(http)")


def _mk_extra(peer=None, rpc=None, req=None):
    return {"peer": peer or "-", "rpc": rpc or "-", "req": req or "-"}


class RpcMethods(str, Enum):
    ETH_GET_BLOCK = "eth_getBlock"
    MOKI_GET_IDENTITY = "moki_getIdentity"
    MOKI_GET_IDENTITY_BY_USERNAME = "moki_getIdentityByUsername"
    MOKI_SERVICE_SEND_MESSAGE = "mokiService_sendMessage"
    MOKI_SERVICE_GET_CHAT = "mokiService_getChat"


class Provider(Protocol):
    """Anything with this ``request`` signature can back a MessageClient.

    Implementations raise on an error response; the return value is the
    JSON-RPC ``result`` member, which may be ``None``.
    """

    def request(self, method: str, params: Optional[List[Any]] = None,
                authorization_header: Optional[str] = None) -> Any: ...


class HttpProvider:
    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None,
                 min_interval: Optional[float] = None, user_agent: Optional[str] = None) -> None:
        self.url = url or CFG.RPC_URL
        self.timeout = float(CFG.RPC_TIMEOUT if timeout is None else timeout)
        self.min_interval = float(CFG.RPC_MIN_INTERVAL if min_interval is None else min_interval)
        self.user_agent = user_agent or CFG.RPC_USER_AGENT
        self._send_lock = threading.Lock()
        self._last_send_ts = 0.0
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return f"HttpProvider({self.url!r})"

    def _pace(self) -> None:
        if self.min_interval <= 0.0:
            return
        with self._send_lock:
            now = time.time()
            wait = (self._last_send_ts + self.min_interval) - now
            if wait > 0:
                time.sleep(wait)
                now = time.time()
            self._last_send_ts = now

    def request(self, method: str, params: Optional[List[Any]] = None,
                authorization_header: Optional[str] = None) -> Any:
        method = method.value if isinstance(method, RpcMethods) else str(method)
        req_id = next(self._ids)
        body = json.dumps({
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params or []),
            "id": req_id,
        }).encode("utf-8")

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        if authorization_header:
            headers["Authorization"] = authorization_header

        http_req = urllib.request.Request(self.url, data=body, headers=headers, method="POST")
        self._pace()
        log.trace("[request] -> %s params=%s", method, params, extra=_mk_extra(self.url, method, req_id))
        http_status = None
        try:
            with urllib.request.urlopen(http_req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            # Relays report JSON-RPC errors with a non-2xx status too.
            http_status = (exc.code, exc.reason)
            raw = exc.read() or b""
            if not raw:
                raise TransportError(method, f"HTTP {exc.code} {exc.reason}", exc.code) from exc
        except (urllib.error.URLError, OSError) as exc:
            log.warning("[request] %s failed: %s", method, exc, extra=_mk_extra(self.url, method, req_id))
            raise TransportError(method, str(getattr(exc, "reason", exc))) from exc

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            if http_status is not None:
                raise TransportError(method, f"HTTP {http_status[0]} {http_status[1]}", http_status[0]) from exc
            raise TransportError(method, "response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise TransportError(method, "response is not a JSON-RPC object")

        err = data.get("error")
        if err:
            if isinstance(err, dict):
                raise TransportError(method, str(err.get("message") or "rpc error"), err.get("code"), err.get("data"))
            raise TransportError(method, str(err))
        if http_status is not None:
            raise TransportError(method, f"HTTP {http_status[0]} {http_status[1]}", http_status[0])

        log.trace("[request] <- %s", method, extra=_mk_extra(self.url, method, req_id))
        return data.get("result")
