# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from ..errors import MalformedRecord


def _require(d: Dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(d, dict) or key not in d:
        raise MalformedRecord(f"{what} missing '{key}'")
    return d[key]


@dataclass(frozen=True)
class IdentityPayload:
    chain_id: int
    delegated_public_key: str
    nonce: int
    op_code: int
    service_identity: str
    username: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IdentityPayload":
        return cls(
            chain_id=int(d.get("chainId", d.get("chain_id", 0)) or 0),
            delegated_public_key=str(d.get("delegated_public_key") or ""),
            nonce=int(d.get("nonce") or 0),
            op_code=int(d.get("op_code") or 0),
            service_identity=str(d.get("service_identity") or ""),
            username=str(d.get("username") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "delegated_public_key": self.delegated_public_key,
            "nonce": self.nonce,
            "op_code": self.op_code,
            "service_identity": self.service_identity,
            "username": self.username,
        }


@dataclass(frozen=True)
class IdentityRecord:
    payload: IdentityPayload
    public_key: str  # compressed, 0x-hex
    signature: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IdentityRecord":
        public_key = str(_require(d, "public_key", "identity"))
        payload = d.get("payload") or {}
        if not isinstance(payload, dict):
            raise MalformedRecord(f"identity payload must be an object, got {type(payload).__name__}")
        return cls(
            payload=IdentityPayload.from_dict(payload),
            public_key=public_key,
            signature=str(d.get("signature") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"payload": self.payload.to_dict(), "public_key": self.public_key, "signature": self.signature}


@dataclass(frozen=True)
class RPCMessage:
    id: str
    receipt: str
    signed_payload: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RPCMessage":
        return cls(
            id=str(_require(d, "id", "rpc message")),
            receipt=str(d.get("receipt") or ""),
            signed_payload=str(_require(d, "signed_payload", "rpc message")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MessagePayload:
    code: int
    recipient: str
    message: str


@dataclass(frozen=True)
class DecryptedMessage:
    id: str
    sender: str
    receipt: str
    timestamp: int
    payload: MessagePayload

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChatPage:
    data: List[DecryptedMessage] = field(default_factory=list)
    end: bool = False


def parse_chat_response(resp: Optional[Dict[str, Any]]) -> tuple[List[RPCMessage], bool]:
    if not isinstance(resp, dict):
        raise MalformedRecord(f"chat response must be an object, got {type(resp).__name__}")
    items = resp.get("data") or []
    return [RPCMessage.from_dict(it) for it in items], bool(resp.get("end", False))
