"""
Message service.

Builds messages for threads and events: link previews come from the first
URL in the body, photos are uploaded to the blob store under the parent's
id. Parent bookkeeping (previews, response counts, aggregate read markers)
is left to the thread and event services.
"""

import logging
from typing import Optional

from clients.base import BlobStore, LinkData, LinkPreviewer
from clients.storage import decode_image
from shared.exceptions import ExternalServiceError
from shared.keys import Key
from shared.log import alarm
from shared.models import Pagination
from shared.reads import mark_read
from modules.users.models import User

from .interfaces import IMessageService
from .models import Message
from .repository import MAX_MARK_READ, MessageRepository
from .exceptions import EmptyMessageError, MessageAccessDeniedError

logger = logging.getLogger(__name__)


def remove_link(body: str, link: Optional[LinkData]) -> str:
    """
    Drop the previewed URL from the body.

    URLs written as markdown links are left alone, since the text around
    them would not make sense without the link.
    """
    if link is None:
        return body
    url = link.original or link.url
    if f"[{url}]" in body or f"]({url})" in body:
        return body
    return body.replace(url, "", 1)


class MessageService(IMessageService):
    """Message operations over the message store."""

    def __init__(
        self,
        repository: MessageRepository,
        previewer: LinkPreviewer,
        blobs: BlobStore,
    ):
        self._repo = repository
        self._previewer = previewer
        self._blobs = blobs

    async def _preview(self, body: str) -> Optional[LinkData]:
        try:
            return await self._previewer.extract(body)
        except ExternalServiceError as e:
            alarm(e.with_op("MessageService.preview"))
            return None

    async def new_message(self, author: User, parent: Key, body: str, blob: str = "") -> Message:
        if not body.strip() and not blob:
            raise EmptyMessageError()

        photos: list[str] = []
        if blob:
            photos.append(await self._blobs.put_photo(parent.encode(), decode_image(blob)))

        link = await self._preview(body) if body else None

        message = Message(
            user=author.key,
            parent=parent,
            body=remove_link(body, link),
            photos=photos,
            link=link,
        )
        mark_read(message, author.key)
        await self._repo.commit(message)
        logger.info("Created message %s on %s", message.id, parent)
        return message

    async def get_messages(self, parent: Key, pagination: Optional[Pagination] = None) -> list[Message]:
        return await self._repo.get_by_parent(parent, pagination)

    async def get_message(self, message_id: str) -> Message:
        return await self._repo.get(message_id)

    async def get_messages_by_user(self, user: Key) -> list[Message]:
        return await self._repo.get_by_user(user)

    async def delete_message(self, message: Message, actor: User) -> None:
        if not message.owner_is(actor.key):
            raise MessageAccessDeniedError(message.id, actor.id)
        await self._repo.delete(message)
        for url in message.photos:
            try:
                await self._blobs.delete_photo(url)
            except ExternalServiceError as e:
                alarm(e.with_op(f"MessageService.delete_message({message.id})"))

    async def delete_messages(self, parent: Key) -> int:
        return await self._repo.delete_by_parent(parent)

    async def mark_messages_as_read(self, user: Key, parent: Key) -> list[Message]:
        messages = (await self._repo.get_by_parent(parent))[-MAX_MARK_READ:]
        for message in messages:
            mark_read(message, user)
        await self._repo.commit_multi(messages)
        return messages

    async def commit_multi(self, messages: list[Message]) -> list[Message]:
        return await self._repo.commit_multi(messages)
