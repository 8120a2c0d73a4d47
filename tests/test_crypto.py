# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: libsecp256k1; NIST-800-38D-AES-GCM; EIP-191

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from mokichat.crypto.aead import encrypt_with_secret, decrypt_with_secret  # noqa: E402
from mokichat.crypto.ecdh import (  # noqa: E402
    compress_public_key, decompress_public_key, derive_shared_secret,
    public_key_from_private, public_key_to_address,
)
from mokichat.crypto.signing import sign_message, recover_address  # noqa: E402
from mokichat.errors import (  # noqa: E402
    AuthenticationFailed, InvalidLength, InvalidSignature, MalformedCiphertext,
)
from conftest import ACCOUNT_1, ACCOUNT_2, ACCOUNT_3, ADDRESS_1  # noqa: E402

SECRET = bytes(range(32))


# ---------------- ECDH ----------------

def test_shared_secret_is_symmetric():
    pa, pb = public_key_from_private(ACCOUNT_1), public_key_from_private(ACCOUNT_2)
    ab = derive_shared_secret(ACCOUNT_1, pb)
    ba = derive_shared_secret(ACCOUNT_2, pa)
    assert ab == ba
    assert len(ab) == 32


def test_shared_secret_differs_for_third_party():
    pb = public_key_from_private(ACCOUNT_2)
    assert derive_shared_secret(ACCOUNT_1, pb) != derive_shared_secret(ACCOUNT_3, pb)


def test_compressed_and_uncompressed_keys_agree():
    pb = public_key_from_private(ACCOUNT_2)
    comp = compress_public_key(pb)
    assert len(comp) == 33 and comp[0] in (2, 3)
    assert decompress_public_key(comp) == pb
    assert derive_shared_secret(ACCOUNT_1, comp) == derive_shared_secret(ACCOUNT_1, pb)


def test_public_key_to_address_known_vector():
    pub = public_key_from_private(ACCOUNT_1)
    assert public_key_to_address(pub) == ADDRESS_1
    assert public_key_to_address(compress_public_key(pub)) == ADDRESS_1


@pytest.mark.parametrize("bad", [b"", bytes(32), bytes(64), b"\x04" + bytes(64)])
def test_bad_public_key(bad):
    with pytest.raises(InvalidLength):
        derive_shared_secret(ACCOUNT_1, bad)


@pytest.mark.parametrize("bad", [bytes(31), bytes(32), b"\xff" * 32])
def test_bad_private_key(bad):
    with pytest.raises(InvalidLength):
        public_key_from_private(bad)


# ---------------- AES-GCM ----------------

@pytest.mark.parametrize("text", ["", "hello", "héllo wörld 你好 🚀", "x" * 10240])
def test_aead_roundtrip(text):
    wire = encrypt_with_secret(SECRET, text)
    assert len(wire) == 12 + 16 + len(text.encode("utf-8"))
    assert decrypt_with_secret(SECRET, wire) == text


def test_aead_nonce_is_fresh():
    a = encrypt_with_secret(SECRET, "same")
    b = encrypt_with_secret(SECRET, "same")
    assert a != b
    assert a[:12] != b[:12]


def test_aead_wrong_secret():
    wire = encrypt_with_secret(SECRET, "secret")
    with pytest.raises(AuthenticationFailed):
        decrypt_with_secret(bytes(32), wire)


@pytest.mark.parametrize("pos", [0, 11, 12, 27, 28])
def test_aead_tamper(pos):
    wire = bytearray(encrypt_with_secret(SECRET, "tamper me"))
    wire[pos] ^= 0x01
    with pytest.raises(AuthenticationFailed):
        decrypt_with_secret(SECRET, bytes(wire))


def test_aead_truncated():
    wire = encrypt_with_secret(SECRET, "abc")
    with pytest.raises(MalformedCiphertext):
        decrypt_with_secret(SECRET, wire[:27])
    with pytest.raises(AuthenticationFailed):
        decrypt_with_secret(SECRET, wire[:-1])


def test_aead_secret_length():
    with pytest.raises(InvalidLength):
        encrypt_with_secret(bytes(16), "x")


# ---------------- Signing ----------------

def test_sign_and_recover():
    msg = b"\x00moki"
    sig = sign_message(ACCOUNT_1, msg)
    assert len(sig) == 65
    assert sig[-1] in (27, 28)
    assert recover_address(msg, sig) == ADDRESS_1


def test_recover_other_message_gives_other_address():
    sig = sign_message(ACCOUNT_1, b"one")
    assert recover_address(b"two", sig) != ADDRESS_1


def test_recover_bad_signature():
    with pytest.raises(InvalidLength):
        recover_address(b"m", bytes(64))
    with pytest.raises(InvalidSignature):
        recover_address(b"m", bytes(64) + b"\x1b")
