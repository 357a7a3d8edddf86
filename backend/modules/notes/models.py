"""
Note entity.

Notes are private bookmarks kept by a user. The backend only reassigns
their owner when accounts are merged.
"""

from datetime import datetime, timezone
from typing import ClassVar

from pydantic import Field

from shared.entity import Entity
from shared.keys import Key


class Note(Entity):
    kind: ClassVar[str] = "Note"

    owner: Key
    body: str = ""
    tags: list[str] = Field(default_factory=list)
    url: str = ""
    favicon: str = ""
    name: str = ""
    pin: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
