# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: EIP-191; libsecp256k1
"""EIP-191 ``personal_sign`` over raw bytes, as wallets sign ``{raw: bytes}``."""

from eth_account import Account
from eth_account.messages import encode_defunct

from ..errors import InvalidSignature, InvalidLength
from ..utils import config as CFG
from ..utils.helpers import to_bytes, BytesLike


def sign_message(private_key: BytesLike, message: bytes) -> bytes:
    """65-byte ``r || s || v`` signature, v in {27, 28}."""
    key = to_bytes(private_key)
    if len(key) != CFG.PRIVATE_KEY_BYTES:
        raise InvalidLength(f"Invalid private key length: {len(key)}, expected {CFG.PRIVATE_KEY_BYTES} bytes")
    signed = Account.sign_message(encode_defunct(primitive=bytes(message)), private_key=key)
    return bytes(signed.signature)


def recover_address(message: bytes, signature: BytesLike) -> str:
    """Checksummed address of whoever signed ``message``."""
    sig = to_bytes(signature)
    if len(sig) != CFG.SIGNATURE_BYTES:
        raise InvalidLength(f"Invalid signature length: {len(sig)}, expected {CFG.SIGNATURE_BYTES} bytes")
    try:
        return Account.recover_message(encode_defunct(primitive=bytes(message)), signature=sig)
    except Exception as exc:
        raise InvalidSignature(f"cannot recover signer: {exc}") from exc
