# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: EIP-55; Keccak-256
from __future__ import annotations

import re, time
from typing import Union

from eth_utils import keccak, to_checksum_address

from ..errors import MalformedRecord, InvalidLength
from ..utils import config as CFG

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")

BytesLike = Union[bytes, bytearray, memoryview, str]


# -----------------------------
# HEX <-> BYTES
# -----------------------------

def strip_0x(h: str) -> str:
    return h[2:] if h[:2] in ("0x", "0X") else h

def hex_to_bytes(h: str) -> bytes:
    raw = strip_0x(h.strip())
    if len(raw) % 2 or not _HEX_RE.match(raw):
        raise MalformedRecord(f"not a hex string: {h[:20]!r}")
    return bytes.fromhex(raw)

def bytes_to_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()

def to_bytes(x: BytesLike) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    if isinstance(x, str):
        return hex_to_bytes(x)
    raise TypeError(f"expected bytes or hex string, got {type(x).__name__}")

def require_len(b: bytes, n: int, what: str) -> bytes:
    if len(b) != n:
        raise InvalidLength(f"Invalid {what} length: {len(b)}, expected {n} bytes")
    return b


# -----------------------------
# ADDRESSES
# -----------------------------

def address_from_public_key(pub_uncompressed: bytes) -> str:
    """EIP-55 address of a 65-byte SEC1 public key."""
    require_len(pub_uncompressed, CFG.PUBKEY_UNCOMPRESSED_BYTES, "public key")
    return to_checksum_address(keccak(pub_uncompressed[1:])[-CFG.ADDRESS_BYTES:])

def canon_address(address: str) -> str:
    return (address or "").strip().lower()


# -----------------------------
# TIME / MESSAGE IDS
# -----------------------------

def now_ms() -> int:
    return int(time.time() * 1000)

def initial_cursor(ts_ms: int | None = None) -> str:
    ts = now_ms() if ts_ms is None else int(ts_ms)
    return f"{ts}" + "0" * CFG.MESSAGE_ID_SUFFIX_LEN

def timestamp_from_id(message_id: str) -> int:
    mid = str(message_id)
    prefix = mid[:-CFG.MESSAGE_ID_SUFFIX_LEN]
    if not prefix.isdigit() or not mid.isdigit():
        raise MalformedRecord(f"invalid message id {mid!r}")
    return int(prefix)

def id_key(message_id: str) -> int:
    try:
        return int(str(message_id))
    except ValueError as exc:
        raise MalformedRecord(f"invalid message id {message_id!r}") from exc
