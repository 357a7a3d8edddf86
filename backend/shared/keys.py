"""
Entity keys.

Every persisted entity is addressed by a ``Key``: the entity kind plus a
server-assigned numeric id. The URL-safe encoding of a key is the entity's
external id, the only identifier clients ever see.
"""

import base64
import binascii
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .exceptions import NotFoundError


class InvalidKeyError(NotFoundError):
    """Raised when an external id cannot be decoded."""

    def __init__(self, encoded: str):
        super().__init__(
            f"Invalid key: {encoded}",
            code="INVALID_KEY",
            details={"key": encoded},
        )


class Key(BaseModel):
    """Immutable (kind, id) pair identifying a stored entity."""

    model_config = ConfigDict(frozen=True)

    kind: str
    id: int

    def encode(self) -> str:
        raw = f"{self.kind}:{self.id}".encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    @classmethod
    def decode(cls, encoded: str, kind: Optional[str] = None) -> "Key":
        """
        Decode an external id.

        Args:
            encoded: URL-safe key encoding
            kind: If given, the decoded key must be of this kind

        Raises:
            InvalidKeyError: If the value is malformed or of another kind
        """
        padded = encoded + "=" * (-len(encoded) % 4)
        try:
            raw = base64.urlsafe_b64decode(padded.encode()).decode()
            decoded_kind, _, raw_id = raw.partition(":")
            key = cls(kind=decoded_kind, id=int(raw_id))
        except (binascii.Error, UnicodeDecodeError, ValueError):
            raise InvalidKeyError(encoded)

        if not key.kind or (kind is not None and key.kind != kind):
            raise InvalidKeyError(encoded)

        return key

    def __str__(self) -> str:
        return f"{self.kind}({self.id})"


def replace_key(keys: list[Key], old: Key, new: Key) -> list[Key]:
    """Swap ``old`` for ``new`` in a key list, dropping duplicates in order."""
    result: list[Key] = []
    for key in keys:
        key = new if key == old else key
        if key not in result:
            result.append(key)
    return result


def unique_keys(keys: list[Key]) -> list[Key]:
    result: list[Key] = []
    for key in keys:
        if key not in result:
            result.append(key)
    return result
