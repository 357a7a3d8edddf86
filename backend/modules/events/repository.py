"""
Event store.
"""

from typing import Optional

from shared.keys import InvalidKeyError, Key
from shared.models import Pagination
from shared.repository import BaseRepository

from .exceptions import EventNotFoundError
from .models import Event


class EventRepository(BaseRepository[Event]):
    """Repository for events."""

    entity_class = Event

    async def get(self, event_id: str) -> Event:
        """
        Load an event by external id.

        Raises:
            EventNotFoundError: If the id is malformed or unknown
        """
        try:
            key = Key.decode(event_id, kind=Event.kind)
        except InvalidKeyError:
            raise EventNotFoundError(event_id)
        event = await self._get(key)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    async def get_by_key(self, key: Key, transactional: bool = False) -> Optional[Event]:
        return await self._get(key, transactional=transactional)

    async def get_by_user(self, user: Key, pagination: Optional[Pagination] = None) -> list[Event]:
        """Events the user is invited to, newest first."""
        query = self._new_query().where_contains("users", user).order("created_at", descending=True)
        if pagination is not None:
            query.page(pagination.offset, pagination.limit)
        return await self._query(query)

    async def commit(self, event: Event) -> Event:
        return await self._save(event)

    async def commit_multi(self, events: list[Event]) -> list[Event]:
        return await self._save_multi(events)

    async def delete(self, event: Event) -> None:
        await self._delete(event)
