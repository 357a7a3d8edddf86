"""
Message entity, API view and request body.
"""

from datetime import datetime, timezone
from typing import ClassVar, Optional

from pydantic import Field

from clients.base import LinkData
from shared.entity import Entity
from shared.keys import Key
from shared.models import ApiModel
from shared.reads import Read
from modules.users.models import UserPartial


class Message(Entity):
    """A post in a thread or event. ``parent`` is the thread or event key."""

    kind: ClassVar[str] = "Message"

    user: Key
    parent: Key
    body: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    photos: list[str] = Field(default_factory=list)
    link: Optional[LinkData] = None
    reads: list[Read] = Field(default_factory=list)

    def owner_is(self, user_key: Optional[Key]) -> bool:
        return self.user == user_key

    @property
    def has_photo(self) -> bool:
        return len(self.photos) > 0

    @property
    def has_link(self) -> bool:
        return self.link is not None


class MessageView(ApiModel):
    id: str
    user: Optional[UserPartial] = None
    parent_id: str
    body: str
    created_at: datetime
    photos: list[str] = Field(default_factory=list)
    link: Optional[LinkData] = None

    @classmethod
    def from_message(cls, message: Message, user: Optional[UserPartial]) -> "MessageView":
        return cls(
            id=message.id,
            user=user,
            parent_id=message.parent.encode(),
            body=message.body,
            created_at=message.created_at,
            photos=list(message.photos),
            link=message.link,
        )


class MessageListResponse(ApiModel):
    messages: list[MessageView]


class CreateMessageRequest(ApiModel):
    body: str = ""
    blob: str = ""
