# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: SCALE-Codec
"""Binary layouts of the two signed record kinds.

MessageProof (v1)
    code        u8
    recipient   [u8; 20]
    message     Vec<u8>     encrypted body: nonce(12) || tag(16) || ciphertext

AuthorizationHeader
    authorization_type  Vec<u8>     UTF-8 tag, e.g. "AUTHORIZE"
    timestamp_id        [u8; 6]     big-endian milliseconds
    identity            [u8; 20]

Fields are written in declared order, exactly as the relay's SCALE structs.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidLength, MalformedRecord
from ..utils import config as CFG
from .scale import (
    encode_u8, encode_fixed, encode_vec, expect_end,
    read_u8, read_fixed, read_vec,
)

MESSAGE_PROOF_MIN_BYTES = 1 + CFG.ADDRESS_BYTES + 1
AUTHORIZATION_HEADER_MIN_BYTES = 1 + CFG.TIMESTAMP_ID_BYTES + CFG.ADDRESS_BYTES


@dataclass(frozen=True)
class MessageProofRecord:
    code: int
    recipient: bytes
    message: bytes

    def __post_init__(self):
        if len(self.recipient) != CFG.ADDRESS_BYTES:
            raise InvalidLength(f"Invalid recipient address length: {len(self.recipient)}, expected {CFG.ADDRESS_BYTES} bytes")


@dataclass(frozen=True)
class AuthorizationHeaderRecord:
    authorization_type: bytes
    timestamp_id: int
    identity: bytes

    def __post_init__(self):
        if len(self.identity) != CFG.ADDRESS_BYTES:
            raise InvalidLength(f"Invalid identity address length: {len(self.identity)}, expected {CFG.ADDRESS_BYTES} bytes")
        if not 0 <= int(self.timestamp_id) < CFG.TIMESTAMP_ID_MAX:
            raise InvalidLength(f"timestamp_id out of range for {CFG.TIMESTAMP_ID_BYTES} bytes: {self.timestamp_id}")


# -----------------------------
# MESSAGE PROOF
# -----------------------------

def encode_message_proof(code: int, recipient: bytes, message: bytes) -> bytes:
    rec = MessageProofRecord(int(code), bytes(recipient), bytes(message))
    return (
        encode_u8(rec.code)
        + encode_fixed(rec.recipient, CFG.ADDRESS_BYTES, "recipient address")
        + encode_vec(rec.message)
    )


def decode_message_proof(data: bytes) -> MessageProofRecord:
    data = bytes(data)
    if len(data) < MESSAGE_PROOF_MIN_BYTES:
        raise MalformedRecord(f"message proof too short: {len(data)} < {MESSAGE_PROOF_MIN_BYTES} bytes")
    code, i = read_u8(data, 0)
    recipient, i = read_fixed(data, i, CFG.ADDRESS_BYTES, "recipient")
    message, i = read_vec(data, i, "message")
    expect_end(data, i, "message proof")
    return MessageProofRecord(code, recipient, message)


# -----------------------------
# AUTHORIZATION HEADER
# -----------------------------

def encode_authorization_header(authorization_type: str | bytes, timestamp: int, identity: bytes) -> bytes:
    if isinstance(authorization_type, str):
        authorization_type = authorization_type.encode("utf-8")
    rec = AuthorizationHeaderRecord(bytes(authorization_type), int(timestamp), bytes(identity))
    return (
        encode_vec(rec.authorization_type)
        + rec.timestamp_id.to_bytes(CFG.TIMESTAMP_ID_BYTES, "big")
        + encode_fixed(rec.identity, CFG.ADDRESS_BYTES, "identity address")
    )


def decode_authorization_header(data: bytes) -> AuthorizationHeaderRecord:
    data = bytes(data)
    if len(data) < AUTHORIZATION_HEADER_MIN_BYTES:
        raise MalformedRecord(f"authorization header too short: {len(data)} < {AUTHORIZATION_HEADER_MIN_BYTES} bytes")
    auth_type, i = read_vec(data, 0, "authorization_type")
    ts_raw, i = read_fixed(data, i, CFG.TIMESTAMP_ID_BYTES, "timestamp_id")
    identity, i = read_fixed(data, i, CFG.ADDRESS_BYTES, "identity")
    expect_end(data, i, "authorization header")
    return AuthorizationHeaderRecord(auth_type, int.from_bytes(ts_raw, "big"), identity)
