# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md
from __future__ import annotations

import threading
from typing import Any, Callable, List, Optional, Tuple

from ..accounts.account import MokiAccount
from ..crypto.ecdh import decompress_public_key
from ..errors import ConfigurationError, MokiError
from ..provider.http import Provider, RpcMethods
from ..storage.persistor import Persistor
from ..utils import config as CFG
from ..utils.helpers import address_from_public_key, id_key, initial_cursor
from .directory import IdentityDirectory
from .proof import build_authorization_header, build_signed_message, verify_and_decrypt
from .types import ChatPage, DecryptedMessage, IdentityRecord, parse_chat_response

# ---------------- Logger ----------------
from ..utils.moki_logging import get_ctx_logger
log = get_ctx_logger("mokichat.messaging(client)")

MessageCallback = Callable[[List[DecryptedMessage]], Any]


class MessageClient:
    """High level messaging API over a JSON-RPC relay.

    Every signature and ECDH derivation is done by the *delegate* account.
    Passing ``dangerously_use_account_as_delegate=True`` lets the main
    account act as its own delegate.
    """

    def __init__(
        self,
        provider: Provider,
        account: MokiAccount,
        delegate_account: Optional[MokiAccount] = None,
        dangerously_use_account_as_delegate: bool = False,
        persistor: Optional[Persistor] = None,
        poll_interval_ms: Optional[int] = None,
    ) -> None:
        if not dangerously_use_account_as_delegate and delegate_account is None:
            raise ConfigurationError(
                "delegate_account must be defined, or enable dangerously_use_account_as_delegate"
            )
        self.provider = provider
        self.account = account
        self.delegate = account if dangerously_use_account_as_delegate else delegate_account
        self.directory = IdentityDirectory(provider, persistor)
        self.poll_interval_ms = int(CFG.CHAT_POLL_INTERVAL_MS if poll_interval_ms is None else poll_interval_ms)

    # ----------- Identity -----------
    def get_identity_from_username(self, username: str) -> IdentityRecord:
        return self.directory.resolve_by_username(username)

    def get_identity_from_address(self, address: str) -> IdentityRecord:
        return self.directory.resolve_by_address(address)

    def _peer(self, username: str) -> Tuple[str, bytes]:
        """(lowercase address, ECDH secret) for the chat with ``username``."""
        identity = self.directory.resolve_by_username(username)
        pub = decompress_public_key(identity.public_key)
        address = address_from_public_key(pub).lower()
        return address, self.delegate.derive_ecdh_secret(pub)

    def authorization_header(self) -> str:
        return build_authorization_header(self.delegate)

    # ----------- RPC -----------
    def get_block(self) -> Any:
        return self.provider.request(RpcMethods.ETH_GET_BLOCK)

    def send_message(self, username: str, message: str) -> DecryptedMessage:
        address, secret = self._peer(username)
        signed = build_signed_message(self.delegate, secret, address, message)
        resp = self.provider.request(RpcMethods.MOKI_SERVICE_SEND_MESSAGE, [signed])
        sent = verify_and_decrypt(secret, resp)
        log.info("[send_message] %s -> %s id=%s", self.delegate.address, address, sent.id,
                 extra={"rpc": RpcMethods.MOKI_SERVICE_SEND_MESSAGE.value})
        return sent

    def _fetch_chat(self, username: str, after: Optional[str] = None) -> Tuple[List[Any], bool, bytes]:
        address, secret = self._peer(username)
        params: List[Any] = [address]
        if after is not None:
            params.append({"after": after})
        resp = self.provider.request(
            RpcMethods.MOKI_SERVICE_GET_CHAT, params,
            authorization_header=self.authorization_header(),
        )
        records, end = parse_chat_response(resp)
        return records, end, secret

    def get_latest_chat(self, username: str) -> ChatPage:
        records, end, secret = self._fetch_chat(username)
        return ChatPage(data=[verify_and_decrypt(secret, r) for r in records], end=end)

    def watch_chat(self, username: str, callback: MessageCallback) -> "ChatWatcher":
        watcher = ChatWatcher(self, username, callback, interval_ms=self.poll_interval_ms)
        watcher.start()
        return watcher


class ChatWatcher:
    """Background poller returned by :meth:`MessageClient.watch_chat`.

    Calling the watcher (or :meth:`stop`) only sets a flag: a request that is
    already in flight completes and the loop exits at its next check.
    """

    def __init__(self, client: MessageClient, username: str, callback: MessageCallback,
                 interval_ms: Optional[int] = None, cursor: Optional[str] = None) -> None:
        self.client = client
        self.username = username
        self.callback = callback
        self.interval_s = int(CFG.CHAT_POLL_INTERVAL_MS if interval_ms is None else interval_ms) / 1000.0
        self._cursor = cursor if cursor is not None else initial_cursor()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def cursor(self) -> str:
        return self._cursor

    @property
    def is_active(self) -> bool:
        return not self._stop.is_set()

    def start(self) -> "ChatWatcher":
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name=f"moki-watch-{self.username}", daemon=True)
            self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()

    __call__ = stop

    def join(self, timeout: Optional[float] = None) -> bool:
        if self._thread is not None:
            self._thread.join(timeout)
            return not self._thread.is_alive()
        return True

    def poll_once(self) -> List[DecryptedMessage]:
        """One iteration: fetch after the cursor, advance it, deliver newest-first."""
        after = self._cursor
        records, _end, secret = self.client._fetch_chat(self.username, after=after)

        floor = id_key(after)
        fresh = []
        for rec in records:
            try:
                key = id_key(rec.id)
            except MokiError as exc:
                log.warning("[watch] dropping record with bad id: %s", exc)
                continue
            if key > floor:
                fresh.append((key, rec))
        if not fresh:
            return []

        fresh.sort(key=lambda kr: kr[0], reverse=True)
        self._cursor = fresh[0][1].id

        out: List[DecryptedMessage] = []
        for _key, rec in fresh:
            try:
                out.append(verify_and_decrypt(secret, rec))
            except Exception:
                log.exception("[watch] error decrypting message %s", rec.id)
        if out:
            self.callback(out)
        return out

    def _run(self) -> None:
        log.debug("[watch] started for %s cursor=%s", self.username, self._cursor)
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                log.exception("[watch] error polling chat %s", self.username)
            self._stop.wait(self.interval_s)
        log.debug("[watch] stopped for %s", self.username)
