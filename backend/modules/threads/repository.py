"""
Thread store.
"""

from datetime import datetime, timezone
from typing import Optional

from shared.keys import InvalidKeyError, Key
from shared.models import Pagination
from shared.repository import BaseRepository

from .exceptions import ThreadNotFoundError
from .models import Thread


class ThreadRepository(BaseRepository[Thread]):
    """Repository for threads."""

    entity_class = Thread

    async def get(self, thread_id: str) -> Thread:
        """
        Load a thread by external id.

        Raises:
            ThreadNotFoundError: If the id is malformed or unknown
        """
        try:
            key = Key.decode(thread_id, kind=Thread.kind)
        except InvalidKeyError:
            raise ThreadNotFoundError(thread_id)
        thread = await self._get(key)
        if thread is None:
            raise ThreadNotFoundError(thread_id)
        return thread

    async def get_by_key(self, key: Key, transactional: bool = False) -> Optional[Thread]:
        return await self._get(key, transactional=transactional)

    async def get_by_numeric_id(self, numeric_id: int) -> Optional[Thread]:
        return await self._get(Key(kind=Thread.kind, id=numeric_id))

    async def get_by_user(self, user: Key, pagination: Optional[Pagination] = None) -> list[Thread]:
        """Threads the user participates in, most recently updated first."""
        query = self._new_query().where_contains("users", user).order("updated_at", descending=True)
        if pagination is not None:
            query.page(pagination.offset, pagination.limit)
        return await self._query(query)

    async def commit(self, thread: Thread, touch: bool = True) -> Thread:
        """Persist a thread. ``touch`` moves it to the top of listings."""
        if touch or thread.updated_at is None:
            thread.updated_at = datetime.now(timezone.utc)
        return await self._save(thread)

    async def commit_multi(self, threads: list[Thread]) -> list[Thread]:
        return await self._save_multi(threads)

    async def delete(self, thread: Thread) -> None:
        await self._delete(thread)
