# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from mokichat.accounts.account import private_key_to_account  # noqa: E402
from mokichat.crypto.ecdh import compress_public_key  # noqa: E402
from mokichat.utils.helpers import bytes_to_hex  # noqa: E402

# Hardhat / anvil development accounts.
ACCOUNT_1 = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ACCOUNT_2 = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
ACCOUNT_3 = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"
RPC_SERVICE = "0x7c852118294e51e653712a81e05800f419141751be58f605c371e15141b007a6"

ADDRESS_1 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeProvider:
    """Scripted relay. ``handlers`` maps method name to a value, a list of
    values (consumed in order) or a callable ``(params, authorization_header)``."""

    def __init__(self, handlers=None):
        self.handlers = dict(handlers or {})
        self.calls = []

    def request(self, method, params=None, authorization_header=None):
        name = getattr(method, "value", method)
        self.calls.append((name, list(params or []), authorization_header))
        if name not in self.handlers:
            raise AssertionError(f"unexpected rpc call {name}")
        h = self.handlers[name]
        if callable(h):
            return h(list(params or []), authorization_header)
        if isinstance(h, list):
            return h.pop(0) if h else None
        return h

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]


def identity_for(account, username):
    return {
        "payload": {
            "chainId": 6654,
            "delegated_public_key": bytes_to_hex(compress_public_key(account.public_key)),
            "nonce": 0,
            "op_code": 1,
            "service_identity": "0x0000000000000000000000000000000000000000",
            "username": username,
        },
        "public_key": bytes_to_hex(compress_public_key(account.public_key)),
        "signature": "0x" + "11" * 65,
    }


@pytest.fixture
def alice():
    return private_key_to_account(ACCOUNT_1)


@pytest.fixture
def bob():
    return private_key_to_account(ACCOUNT_2)


@pytest.fixture
def carol():
    return private_key_to_account(ACCOUNT_3)


@pytest.fixture
def relay(alice, bob):
    """FakeProvider that knows @alice and @bob and echoes sent messages."""
    users = {"@alice": identity_for(alice, "@alice"), "@bob": identity_for(bob, "@bob")}
    by_addr = {
        alice.address.lower(): users["@alice"],
        bob.address.lower(): users["@bob"],
    }
    sent = []

    def send(params, _auth):
        rec = {
            "id": "1700000000000" + str(len(sent)).zfill(10),
            "receipt": "0x" + "ab" * 32,
            "signed_payload": params[0],
        }
        sent.append(rec)
        return rec

    return FakeProvider({
        "eth_getBlock": "0x10",
        "moki_getIdentityByUsername": lambda p, _a: users.get(p[0]),
        "moki_getIdentity": lambda p, _a: by_addr.get(p[0]),
        "mokiService_sendMessage": send,
    })
