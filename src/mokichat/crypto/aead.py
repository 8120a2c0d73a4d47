# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: NIST-800-38D-AES-GCM

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import AuthenticationFailed, InvalidLength, MalformedCiphertext
from ..utils import config as CFG

NONCE = CFG.AES_NONCE_BYTES
TAG = CFG.AES_TAG_BYTES
MIN_WIRE_BYTES = NONCE + TAG


def _aes(secret: bytes) -> AESGCM:
    if len(secret) != CFG.SHARED_SECRET_BYTES:
        raise InvalidLength(f"Invalid shared secret length: {len(secret)}, expected {CFG.SHARED_SECRET_BYTES} bytes")
    return AESGCM(bytes(secret))


def encrypt_with_secret(secret: bytes, plaintext: str) -> bytes:
    """Return ``nonce(12) || tag(16) || ciphertext``.

    AESGCM appends the tag to the ciphertext; the wire puts it right after
    the nonce, so the output is reordered here.
    """
    nonce = os.urandom(NONCE)
    sealed = _aes(secret).encrypt(nonce, plaintext.encode("utf-8"), None)
    ct, tag = sealed[:-TAG], sealed[-TAG:]
    return nonce + tag + ct


def decrypt_with_secret(secret: bytes, wire: bytes) -> str:
    wire = bytes(wire)
    if len(wire) < MIN_WIRE_BYTES:
        raise MalformedCiphertext(f"ciphertext too short: {len(wire)} < {MIN_WIRE_BYTES} bytes")
    nonce, tag, ct = wire[:NONCE], wire[NONCE:MIN_WIRE_BYTES], wire[MIN_WIRE_BYTES:]
    try:
        pt = _aes(secret).decrypt(nonce, ct + tag, None)
    except InvalidTag as exc:
        raise AuthenticationFailed("AES-GCM tag mismatch") from exc
    return pt.decode("utf-8", "replace")
