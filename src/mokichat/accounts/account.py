# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: EIP-191; EIP-55; libsecp256k1
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Callable, Tuple

from ecdsa import SECP256k1

from ..crypto.ecdh import check_private_key, derive_shared_secret, public_key_from_private
from ..crypto.signing import sign_message
from ..utils.helpers import address_from_public_key, bytes_to_hex, to_bytes, BytesLike


@dataclass(frozen=True)
class MokiAccount:
    """One identity: address, public key and two key-bound capabilities.

    The private key only lives inside the ``_signer`` / ``_deriver`` closures
    built by :func:`private_key_to_account`; there is no accessor for it.
    """
    address: str
    public_key: str
    _signer: Callable[[bytes], bytes] = field(repr=False, compare=False)
    _deriver: Callable[[bytes], bytes] = field(repr=False, compare=False)

    def sign_message(self, message: bytes) -> str:
        return bytes_to_hex(self._signer(bytes(message)))

    def derive_ecdh_secret(self, public_key: BytesLike) -> bytes:
        return self._deriver(to_bytes(public_key))


def private_key_to_account(private_key: BytesLike) -> MokiAccount:
    key = check_private_key(private_key)
    pub = public_key_from_private(key)

    def _sign(message: bytes) -> bytes:
        return sign_message(key, message)

    def _derive(peer_public_key: bytes) -> bytes:
        return derive_shared_secret(key, peer_public_key)

    return MokiAccount(
        address=address_from_public_key(pub),
        public_key=bytes_to_hex(pub),
        _signer=_sign,
        _deriver=_derive,
    )


def generate_account() -> Tuple[str, MokiAccount]:
    """Fresh random key. Returns ``(private_key_hex, account)``; storing the key is the caller's job."""
    while True:
        raw = secrets.token_bytes(32)
        if 1 <= int.from_bytes(raw, "big") < SECP256k1.order:
            break
    return bytes_to_hex(raw), private_key_to_account(raw)
