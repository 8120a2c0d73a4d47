# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: SCALE-Codec; CompactSize
"""SCALE primitives used by the record codecs.

Only what the message and authorization records need: ``u8``, fixed-width
byte arrays and the ``Vec<u8>`` form (compact length prefix followed by the
bytes). Compact integers use the four SCALE modes:

    0b00  single byte    value < 2**6
    0b01  two bytes LE   value < 2**14
    0b10  four bytes LE  value < 2**30
    0b11  big integer    first byte holds (n - 4) << 2, then n bytes LE
"""
from __future__ import annotations

from typing import Tuple

from ..errors import MalformedRecord, InvalidLength

_SINGLE_MAX = 1 << 6
_TWO_MAX = 1 << 14
_FOUR_MAX = 1 << 30
_BIG_MAX_BYTES = 67


def encode_compact(n: int) -> bytes:
    if n < 0:
        raise InvalidLength(f"compact integer must be non-negative, got {n}")
    if n < _SINGLE_MAX:
        return bytes([n << 2])
    if n < _TWO_MAX:
        return ((n << 2) | 0b01).to_bytes(2, "little")
    if n < _FOUR_MAX:
        return ((n << 2) | 0b10).to_bytes(4, "little")
    size = max(4, (n.bit_length() + 7) // 8)
    if size > _BIG_MAX_BYTES:
        raise InvalidLength(f"compact integer too large: {size} bytes")
    return bytes([((size - 4) << 2) | 0b11]) + n.to_bytes(size, "little")


def decode_compact(data: bytes, i: int = 0) -> Tuple[int, int]:
    """Return ``(value, next_offset)``."""
    if i >= len(data):
        raise MalformedRecord("truncated compact integer")
    mode = data[i] & 0b11
    if mode == 0b00:
        return data[i] >> 2, i + 1
    if mode == 0b01:
        if i + 2 > len(data):
            raise MalformedRecord("truncated compact integer")
        return int.from_bytes(data[i:i+2], "little") >> 2, i + 2
    if mode == 0b10:
        if i + 4 > len(data):
            raise MalformedRecord("truncated compact integer")
        return int.from_bytes(data[i:i+4], "little") >> 2, i + 4
    size = (data[i] >> 2) + 4
    start = i + 1
    if start + size > len(data):
        raise MalformedRecord("truncated compact integer")
    return int.from_bytes(data[start:start+size], "little"), start + size


# -----------------------------
# FIELD READERS / WRITERS
# -----------------------------

def encode_u8(v: int) -> bytes:
    if not 0 <= int(v) <= 0xFF:
        raise InvalidLength(f"u8 out of range: {v}")
    return bytes([int(v)])

def encode_fixed(b: bytes, n: int, what: str) -> bytes:
    if len(b) != n:
        raise InvalidLength(f"Invalid {what} length: {len(b)}, expected {n} bytes")
    return bytes(b)

def encode_vec(b: bytes) -> bytes:
    return encode_compact(len(b)) + bytes(b)

def read_u8(data: bytes, i: int) -> Tuple[int, int]:
    if i + 1 > len(data):
        raise MalformedRecord("truncated u8")
    return data[i], i + 1

def read_fixed(data: bytes, i: int, n: int, what: str) -> Tuple[bytes, int]:
    if i + n > len(data):
        raise MalformedRecord(f"truncated {what}: need {n} bytes, have {len(data) - i}")
    return bytes(data[i:i+n]), i + n

def read_vec(data: bytes, i: int, what: str) -> Tuple[bytes, int]:
    ln, i = decode_compact(data, i)
    if i + ln > len(data):
        raise MalformedRecord(f"{what} length prefix claims {ln} bytes, only {len(data) - i} remain")
    return bytes(data[i:i+ln]), i + ln

def expect_end(data: bytes, i: int, what: str) -> None:
    if i != len(data):
        raise MalformedRecord(f"{len(data) - i} trailing byte(s) after {what}")
