"""
Message store.

Messages are queried by parent (thread or event) in creation order, and by
author when an account is merged away.
"""

from typing import Optional

from shared.keys import InvalidKeyError, Key
from shared.models import Pagination
from shared.repository import BaseRepository

from .exceptions import MessageNotFoundError
from .models import Message

MAX_MARK_READ = 50


class MessageRepository(BaseRepository[Message]):
    """Repository for messages."""

    entity_class = Message

    async def get(self, message_id: str) -> Message:
        """
        Load a message by external id.

        Raises:
            MessageNotFoundError: If the id is malformed or unknown
        """
        try:
            key = Key.decode(message_id, kind=Message.kind)
        except InvalidKeyError:
            raise MessageNotFoundError(message_id)
        message = await self._get(key)
        if message is None:
            raise MessageNotFoundError(message_id)
        return message

    async def get_by_parent(
        self,
        parent: Key,
        pagination: Optional[Pagination] = None,
    ) -> list[Message]:
        """Messages of a thread or event, oldest first."""
        query = self._new_query().where("parent", parent).order("created_at")
        if pagination is not None:
            query.page(pagination.offset, pagination.limit)
        return await self._query(query)

    async def get_by_user(self, user: Key) -> list[Message]:
        return await self._query(self._new_query().where("user", user))

    async def commit(self, message: Message) -> Message:
        return await self._save(message)

    async def commit_multi(self, messages: list[Message]) -> list[Message]:
        return await self._save_multi(messages)

    async def delete(self, message: Message) -> None:
        await self._delete(message)

    async def delete_by_parent(self, parent: Key) -> int:
        messages = await self.get_by_parent(parent)
        await self._db.delete_multi([m.key for m in messages])
        return len(messages)
