"""
Thread entity, API view and request bodies.
"""

from datetime import datetime, timezone
from typing import ClassVar, Optional

from pydantic import BaseModel, Field
from slugify import slugify

from clients.base import LinkData
from shared.config import get_settings
from shared.entity import Entity
from shared.keys import Key
from shared.models import ApiModel, UserInput
from shared.reads import Read
from modules.messages.models import Message, MessageView
from modules.users.models import UserPartial

MAX_THREAD_USERS = 11
MAX_SUBJECT_LENGTH = 255
EMAIL_SLUG_LENGTH = 20


class ThreadPreview(BaseModel):
    """Copy of a thread's first message, kept on the thread for listings."""

    message: Key
    user: Key
    body: str = ""
    created_at: datetime
    photos: list[str] = Field(default_factory=list)
    link: Optional[LinkData] = None

    @classmethod
    def from_message(cls, message: Message) -> "ThreadPreview":
        return cls(
            message=message.key,
            user=message.user,
            body=message.body,
            created_at=message.created_at,
            photos=list(message.photos),
            link=message.link,
        )

    def to_message(self, parent: Key) -> Message:
        """Rebuild the anchor message, e.g. when it has to pad an email."""
        message = Message(
            user=self.user,
            parent=parent,
            body=self.body,
            created_at=self.created_at,
            photos=list(self.photos),
            link=self.link,
        )
        message.set_key(self.message)
        return message


class Thread(Entity):
    """A persistent group conversation with up to eleven members."""

    kind: ClassVar[str] = "Thread"
    tolerated_fields: ClassVar[frozenset[str]] = frozenset({"preview"})

    owner: Key
    users: list[Key] = Field(default_factory=list)
    subject: str = ""
    preview: Optional[ThreadPreview] = None
    reads: list[Read] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    response_count: int = 0

    @property
    def display_name(self) -> str:
        return self.subject

    @property
    def email(self) -> str:
        """Reply address. Mail to it is ingested as a message on this thread."""
        return reply_address(self.subject, self.key.id if self.key else 0)

    def has_user(self, user_key: Optional[Key]) -> bool:
        return user_key in self.users

    def owner_is(self, user_key: Optional[Key]) -> bool:
        return self.owner == user_key

    def is_preview(self, message: Message) -> bool:
        return self.preview is not None and message.has_key(self.preview.message)

    def is_sendable(self) -> bool:
        """Whether anyone besides the owner could receive thread email."""
        return any(key != self.owner for key in self.users)


def reply_address(name: str, numeric_id: int, domain: Optional[str] = None) -> str:
    slug = slugify(name)[:EMAIL_SLUG_LENGTH]
    return f"{slug}-{numeric_id}@{domain or get_settings().mail_domain}"


class ThreadView(ApiModel):
    id: str
    owner: Optional[UserPartial] = None
    users: list[UserPartial] = Field(default_factory=list)
    subject: str
    preview: Optional[MessageView] = None
    reads: list[UserPartial] = Field(default_factory=list)
    response_count: int = 0


class ThreadListResponse(ApiModel):
    threads: list[ThreadView]


class CreateThreadRequest(ApiModel):
    subject: str = Field(default="", max_length=MAX_SUBJECT_LENGTH)
    users: list[UserInput] = Field(default_factory=list)
    body: str = ""
    blob: str = ""


class UpdateThreadRequest(ApiModel):
    subject: str = Field(min_length=1, max_length=MAX_SUBJECT_LENGTH)
