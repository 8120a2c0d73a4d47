# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: libsecp256k1; SEC1-PointEncoding
from __future__ import annotations

import hashlib

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError

from ..errors import InvalidLength
from ..utils import config as CFG
from ..utils.helpers import address_from_public_key, to_bytes, BytesLike

_VALID_PUB_LENGTHS = (CFG.PUBKEY_COMPRESSED_BYTES, CFG.PUBKEY_UNCOMPRESSED_BYTES)


def check_private_key(private_key: BytesLike) -> bytes:
    raw = to_bytes(private_key)
    if len(raw) != CFG.PRIVATE_KEY_BYTES:
        raise InvalidLength(f"Invalid private key length: {len(raw)}, expected {CFG.PRIVATE_KEY_BYTES} bytes")
    if not 1 <= int.from_bytes(raw, "big") < SECP256k1.order:
        raise InvalidLength("private key outside secp256k1 range")
    return raw


def _signing_key(private_key: BytesLike) -> SigningKey:
    return SigningKey.from_string(check_private_key(private_key), curve=SECP256k1)


def _verifying_key(public_key: BytesLike) -> VerifyingKey:
    raw = to_bytes(public_key)
    if len(raw) not in _VALID_PUB_LENGTHS:
        raise InvalidLength(f"Invalid public key length: {len(raw)}, expected 33 or 65 bytes")
    try:
        return VerifyingKey.from_string(raw, curve=SECP256k1)
    except (MalformedPointError, ValueError) as exc:
        raise InvalidLength(f"public key is not a secp256k1 point: {exc}") from exc


def public_key_from_private(private_key: BytesLike) -> bytes:
    """65-byte uncompressed public key of ``private_key``."""
    return _signing_key(private_key).get_verifying_key().to_string("uncompressed")


def compress_public_key(public_key: BytesLike) -> bytes:
    return _verifying_key(public_key).to_string("compressed")


def decompress_public_key(public_key: BytesLike) -> bytes:
    return _verifying_key(public_key).to_string("uncompressed")


def derive_shared_secret(private_key: BytesLike, peer_public_key: BytesLike) -> bytes:
    """sha256(compressed(d * P)): 32 bytes, symmetric for the two parties."""
    d = _signing_key(private_key).privkey.secret_multiplier
    peer = _verifying_key(peer_public_key)
    shared = VerifyingKey.from_public_point(peer.pubkey.point * d, curve=SECP256k1)
    return hashlib.sha256(shared.to_string("compressed")).digest()


def public_key_to_address(public_key: BytesLike) -> str:
    """EIP-55 address of a 33- or 65-byte secp256k1 public key."""
    return address_from_public_key(decompress_public_key(public_key))
