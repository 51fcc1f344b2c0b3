"""External identifier encoding.

Primary keys never leave the service in raw form. Each id is rendered as a
URL-safe token carrying a short HMAC tag, so that a token cannot be edited
into a neighbouring id and anything not issued with the same salt is
rejected instead of decoding to the wrong row.

Token layout (before base64url, padding stripped)::

    HMAC-SHA256(salt, id_bytes)[:tag_bytes] + id_bytes (big-endian, minimal length)
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from typing import Iterable, List, Optional

from invoicing.utils.errors import InvalidIdentifier


class IdentifierEncoder:
    def __init__(self, salt: str, *, tag_bytes: int = 4) -> None:
        if not salt:
            raise ValueError("Identifier salt must not be empty")
        self._key = salt.encode("utf-8")
        self._tag_bytes = tag_bytes

    def _tag(self, payload: bytes) -> bytes:
        return hmac.new(self._key, payload, hashlib.sha256).digest()[: self._tag_bytes]

    def encode(self, value: int) -> str:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Identifier must be an int, got {type(value).__name__}")
        if value < 0:
            raise ValueError("Identifier must be non-negative")
        payload = value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
        token = base64.urlsafe_b64encode(self._tag(payload) + payload)
        return token.rstrip(b"=").decode("ascii")

    def encode_optional(self, value: Optional[int]) -> str:
        """Encode a nullable foreign key; absent keys render as ''."""
        if value is None:
            return ""
        return self.encode(value)

    def decode(self, token: str) -> int:
        if not isinstance(token, str) or not token:
            raise InvalidIdentifier(token)
        try:
            raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
        except (binascii.Error, ValueError):
            raise InvalidIdentifier(token) from None
        if len(raw) <= self._tag_bytes:
            raise InvalidIdentifier(token)
        tag, payload = raw[: self._tag_bytes], raw[self._tag_bytes:]
        if not hmac.compare_digest(tag, self._tag(payload)):
            raise InvalidIdentifier(token)
        value = int.from_bytes(payload, "big")
        # b64decode silently drops stray characters; only the canonical form is accepted
        if self.encode(value) != token:
            raise InvalidIdentifier(token)
        return value

    def decode_many(self, tokens: Iterable[str]) -> List[int]:
        """Decode a batch of tokens, dropping the malformed ones."""
        values: List[int] = []
        for token in tokens:
            try:
                values.append(self.decode(token))
            except InvalidIdentifier:
                continue
        return values


__all__ = ["IdentifierEncoder"]
