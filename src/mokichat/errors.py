# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md

from typing import Any, Optional


class MokiError(Exception):
    """Base class for every error raised by mokichat."""


class InvalidLength(MokiError, ValueError):
    """A fixed-size field (address, key, timestamp) has the wrong size."""


class MalformedRecord(MokiError, ValueError):
    """Encoded record, hex payload or message id cannot be parsed."""


class MalformedCiphertext(MokiError, ValueError):
    """Ciphertext is shorter than nonce + tag."""


class AuthenticationFailed(MokiError, ValueError):
    """AES-GCM tag did not verify."""


class InvalidSignature(MokiError, ValueError):
    """Signature cannot be parsed or no signer can be recovered from it."""


class UnsupportedMessageType(MokiError, ValueError):
    def __init__(self, message_type: int):
        self.message_type = int(message_type)
        super().__init__(f"Unsupported message type '{self.message_type:02x}'")


class IdentityNotFound(MokiError, LookupError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Could not fetch identity for {key!r}")


class ConfigurationError(MokiError, RuntimeError):
    """Client constructed without a usable signing delegate."""


class TransportError(MokiError, RuntimeError):
    def __init__(self, method: str, message: str, code: Optional[int] = None, data: Any = None):
        self.method = method
        self.code = code
        self.data = data
        super().__init__(f"{method}: {message}" + (f" (code {code})" if code is not None else ""))
