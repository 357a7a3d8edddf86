"""
Messages module interface.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.keys import Key
from shared.models import Pagination
from modules.users.models import User

from .models import Message


@runtime_checkable
class IMessageService(Protocol):
    """
    Interface for posting and reading messages.

    Membership checks belong to the thread and event services; this
    interface assumes the caller already checked them.
    """

    async def new_message(self, author: User, parent: Key, body: str, blob: str = "") -> Message:
        """
        Build and store a message.

        Resolves a link preview from the first URL in ``body`` and uploads
        ``blob`` (base64) as a photo when given.

        Raises:
            EmptyMessageError: If there is neither a body nor a photo
            InvalidImageError: If ``blob`` is not valid base64
        """
        ...

    async def get_messages(self, parent: Key, pagination: Optional[Pagination] = None) -> list[Message]:
        """Messages of a thread or event, oldest first."""
        ...

    async def get_message(self, message_id: str) -> Message:
        """
        Raises:
            MessageNotFoundError: If the message does not exist
        """
        ...

    async def delete_message(self, message: Message, actor: User) -> None:
        """
        Delete a message. Only its author may delete it.

        Raises:
            MessageAccessDeniedError: If ``actor`` is not the author
        """
        ...

    async def mark_messages_as_read(self, user: Key, parent: Key) -> list[Message]:
        """Mark up to fifty messages of ``parent`` as read by ``user``."""
        ...
