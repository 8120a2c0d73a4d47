# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: EIP-191; SCALE-Codec; NIST-800-38D-AES-GCM
from __future__ import annotations

from typing import Optional, Union

from ..accounts.account import MokiAccount
from ..codec.records import encode_message_proof, decode_message_proof, encode_authorization_header
from ..crypto.aead import encrypt_with_secret, decrypt_with_secret
from ..crypto.signing import recover_address
from ..errors import AuthenticationFailed, MalformedCiphertext, MalformedRecord, UnsupportedMessageType
from ..utils import config as CFG
from ..utils.helpers import bytes_to_hex, hex_to_bytes, now_ms, timestamp_from_id, require_len
from .types import DecryptedMessage, MessagePayload, RPCMessage

# ---------------- Logger ----------------
from ..utils.moki_logging import get_ctx_logger
log = get_ctx_logger("mokichat.messaging(proof)")


def build_signed_message(account: MokiAccount, secret: bytes, recipient: Union[str, bytes], text: str) -> str:
    """Encrypt ``text`` for ``recipient`` and return the signed envelope as 0x-hex."""
    recipient_b = hex_to_bytes(recipient) if isinstance(recipient, str) else bytes(recipient)
    require_len(recipient_b, CFG.ADDRESS_BYTES, "recipient address")
    encrypted = encrypt_with_secret(secret, text)
    proof = encode_message_proof(CFG.MESSAGE_TYPE_TEXT, recipient_b, encrypted)
    signature = hex_to_bytes(account.sign_message(proof))
    log.trace("[build_signed_message] proof=%dB body=%dB", len(proof), len(encrypted))
    return bytes_to_hex(proof + signature)


def build_authorization_header(account: MokiAccount, timestamp_ms: Optional[int] = None,
                               authorization_type: str = CFG.AUTHORIZATION_TYPE) -> str:
    ts = now_ms() if timestamp_ms is None else int(timestamp_ms)
    header = encode_authorization_header(authorization_type, ts, hex_to_bytes(account.address))
    signature = hex_to_bytes(account.sign_message(header))
    return bytes_to_hex(header + signature)


def split_envelope(signed_payload: str) -> tuple[bytes, bytes]:
    raw = hex_to_bytes(signed_payload)
    if len(raw) <= CFG.SIGNATURE_BYTES:
        raise MalformedRecord(f"signed payload too short: {len(raw)} bytes")
    return raw[:-CFG.SIGNATURE_BYTES], raw[-CFG.SIGNATURE_BYTES:]


def verify_and_decrypt(secret: bytes, message: Union[RPCMessage, dict]) -> DecryptedMessage:
    """Recover the sender, decode the proof and decrypt its body.

    An unknown discriminant raises ``UnsupportedMessageType``. A body that fails
    to decrypt yields ``payload.message == ""`` instead of raising.
    """
    if isinstance(message, dict):
        message = RPCMessage.from_dict(message)
    elif not isinstance(message, RPCMessage):
        raise MalformedRecord(f"rpc message must be an object, got {type(message).__name__}")

    record, signature = split_envelope(message.signed_payload)
    sender = recover_address(record, signature).lower()

    msg_type = record[0]
    if msg_type not in CFG.SUPPORTED_MESSAGE_TYPES:
        raise UnsupportedMessageType(msg_type)

    proof = decode_message_proof(record)
    try:
        text = decrypt_with_secret(secret, proof.message)
    except (AuthenticationFailed, MalformedCiphertext) as exc:
        log.warning("[verify_and_decrypt] failed to decrypt message %s: %s", message.id, exc)
        text = ""

    return DecryptedMessage(
        id=message.id,
        sender=sender,
        receipt=message.receipt,
        timestamp=timestamp_from_id(message.id),
        payload=MessagePayload(code=proof.code, recipient=bytes_to_hex(proof.recipient), message=text),
    )
