"""
Read markers.

Threads, events and messages carry a list of ``Read`` markers, one per user
who has seen the entity. Anything with a ``reads`` list satisfies
``Readable``; anything with a key and a display name satisfies
``Digestable`` and can head a digest section.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from .keys import Key


class Read(BaseModel):
    """A user's marker on an entity."""

    user: Key
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class Readable(Protocol):
    reads: list[Read]


@runtime_checkable
class Digestable(Protocol):
    @property
    def key(self) -> Optional[Key]: ...

    @property
    def display_name(self) -> str: ...


def is_read(entity: Readable, user: Key) -> bool:
    return any(r.user == user for r in entity.reads)


def mark_read(entity: Readable, user: Key, when: Optional[datetime] = None) -> None:
    """Set or refresh the user's marker. Marking twice keeps a single marker."""
    marker = Read(user=user, time=when or datetime.now(timezone.utc))
    entity.reads = [r for r in entity.reads if r.user != user] + [marker]


def clear_reads(entity: Readable) -> None:
    entity.reads = []


def readers(entity: Readable) -> list[Key]:
    return [r.user for r in entity.reads]


def replace_reader(entity: Readable, old: Key, new: Key) -> None:
    """Rewrite ``old``'s marker as ``new``'s, keeping the newest if both exist."""
    merged: dict[Key, Read] = {}
    for r in entity.reads:
        user = new if r.user == old else r.user
        current = merged.get(user)
        if current is None or r.time > current.time:
            merged[user] = Read(user=user, time=r.time)
    entity.reads = list(merged.values())
