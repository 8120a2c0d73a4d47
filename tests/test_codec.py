# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: SCALE-Codec

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from mokichat.codec.scale import encode_compact, decode_compact  # noqa: E402
from mokichat.codec.records import (  # noqa: E402
    encode_message_proof, decode_message_proof,
    encode_authorization_header, decode_authorization_header,
    MESSAGE_PROOF_MIN_BYTES, AUTHORIZATION_HEADER_MIN_BYTES,
)
from mokichat.errors import InvalidLength, MalformedRecord  # noqa: E402

RECIPIENT = bytes(range(20))


@pytest.mark.parametrize("value,encoded", [
    (0, "00"),
    (1, "04"),
    (63, "fc"),
    (64, "0101"),
    (16383, "fdff"),
    (16384, "02000100"),
    ((1 << 30) - 1, "feffffff"),
    (1 << 30, "0300000040"),
])
def test_compact_known_vectors(value, encoded):
    assert encode_compact(value).hex() == encoded
    assert decode_compact(bytes.fromhex(encoded)) == (value, len(encoded) // 2)


def test_compact_big_integer_mode():
    n = 1 << 64
    enc = encode_compact(n)
    assert enc[0] & 0b11 == 0b11
    assert decode_compact(enc) == (n, len(enc))


@pytest.mark.parametrize("raw", ["", "01", "02aabb", "07000000"])
def test_compact_truncated(raw):
    with pytest.raises(MalformedRecord):
        decode_compact(bytes.fromhex(raw))


@pytest.mark.parametrize("message", [b"", b"x", bytes(300), os.urandom(70000)])
def test_message_proof_roundtrip(message):
    enc = encode_message_proof(0, RECIPIENT, message)
    rec = decode_message_proof(enc)
    assert (rec.code, rec.recipient, rec.message) == (0, RECIPIENT, message)


def test_message_proof_layout():
    enc = encode_message_proof(0, RECIPIENT, b"\xaa\xbb")
    assert enc == b"\x00" + RECIPIENT + b"\x08" + b"\xaa\xbb"
    assert len(encode_message_proof(0, RECIPIENT, b"")) == MESSAGE_PROOF_MIN_BYTES


@pytest.mark.parametrize("size", [0, 19, 21, 32])
def test_message_proof_recipient_length(size):
    with pytest.raises(InvalidLength):
        encode_message_proof(0, bytes(size), b"hi")


def test_message_proof_rejects_short_and_trailing():
    enc = encode_message_proof(0, RECIPIENT, b"hello")
    with pytest.raises(MalformedRecord):
        decode_message_proof(enc[:MESSAGE_PROOF_MIN_BYTES - 1])
    with pytest.raises(MalformedRecord):
        decode_message_proof(enc[:-1])
    with pytest.raises(MalformedRecord):
        decode_message_proof(enc + b"\x00")


@pytest.mark.parametrize("ts", [0, 1_700_000_000_000, (1 << 48) - 1])
def test_authorization_header_roundtrip(ts):
    enc = encode_authorization_header("AUTHORIZE", ts, RECIPIENT)
    rec = decode_authorization_header(enc)
    assert rec.authorization_type == b"AUTHORIZE"
    assert rec.timestamp_id == ts
    assert rec.identity == RECIPIENT


def test_authorization_header_layout():
    enc = encode_authorization_header("AUTHORIZE", 0x010203040506, RECIPIENT)
    assert enc[0] == len("AUTHORIZE") << 2
    assert enc[1:10] == b"AUTHORIZE"
    assert enc[10:16] == bytes.fromhex("010203040506")
    assert enc[16:] == RECIPIENT
    assert len(encode_authorization_header(b"", 0, RECIPIENT)) == AUTHORIZATION_HEADER_MIN_BYTES


def test_authorization_header_errors():
    with pytest.raises(InvalidLength):
        encode_authorization_header("AUTHORIZE", 1 << 48, RECIPIENT)
    with pytest.raises(InvalidLength):
        encode_authorization_header("AUTHORIZE", 1, bytes(19))
    enc = encode_authorization_header("AUTHORIZE", 1, RECIPIENT)
    with pytest.raises(MalformedRecord):
        decode_authorization_header(enc + b"\x01")
    with pytest.raises(MalformedRecord):
        decode_authorization_header(enc[:AUTHORIZATION_HEADER_MIN_BYTES - 1])
