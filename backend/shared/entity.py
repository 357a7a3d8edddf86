"""
Base class for persisted entities.

Entities are pydantic models. Their stored form is the JSON dump of every
field not marked ``exclude=True``; excluded fields hold derived or hydrated
values that are recomputed after load. Loading is a best-effort decode: a
per-kind set of legacy fields may fail validation and is dropped, any other
mismatch is an integrity error.
"""

import logging
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from .exceptions import IntegrityError
from .keys import Key

logger = logging.getLogger(__name__)


class EntityDecodeError(IntegrityError):
    """Raised when a stored record does not match its entity model."""

    def __init__(self, key: Key, reason: str):
        super().__init__(
            f"Could not decode {key}: {reason}",
            code="ENTITY_DECODE_FAILED",
            details={"kind": key.kind, "id": key.id},
        )


class Entity(BaseModel):
    """
    A stored record addressed by a ``Key``.

    Subclasses set ``kind`` and may list ``tolerated_fields`` whose stored
    values are discarded when they no longer validate.
    """

    model_config = ConfigDict(extra="forbid")

    kind: ClassVar[str] = ""
    tolerated_fields: ClassVar[frozenset[str]] = frozenset()

    _key: Optional[Key] = PrivateAttr(default=None)
    _version: Optional[int] = PrivateAttr(default=None)

    @property
    def key(self) -> Optional[Key]:
        return self._key

    def set_key(self, value: Optional[Key]) -> None:
        self._key = value

    @property
    def id(self) -> str:
        """External id, empty until the entity has been stored."""
        return self._key.encode() if self._key else ""

    @property
    def version(self) -> Optional[int]:
        return self._version

    def mark_stored(self, key: Key) -> None:
        """Record the key after a write. The stored version is no longer known."""
        self._key = key
        self._version = None

    def has_key(self, key: Optional[Key]) -> bool:
        return self._key is not None and self._key == key

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def after_load(self) -> None:
        """Hook for recomputing derived fields. Called after decoding."""

    @classmethod
    def from_record(
        cls,
        key: Key,
        data: dict[str, Any],
        version: Optional[int] = None,
    ):
        data = dict(data)
        try:
            entity = cls.model_validate(data)
        except PydanticValidationError as e:
            failed = {err["loc"][0] for err in e.errors() if err["loc"]}
            if not failed or not failed <= cls.tolerated_fields:
                raise EntityDecodeError(key, str(e))
            logger.info("Dropping legacy fields %s from %s", sorted(failed), key)
            for field in failed:
                data.pop(field, None)
            try:
                entity = cls.model_validate(data)
            except PydanticValidationError as retry_error:
                raise EntityDecodeError(key, str(retry_error))

        entity._key = key
        entity._version = version
        entity.after_load()
        return entity
