"""
Mail models.

``EmailMessage`` is a fully rendered, sendable email. The other models are
the inputs of the templates in ``templates/``.
"""

from typing import Optional

from pydantic import BaseModel, Field

from shared.keys import Key
from modules.messages.models import Message


class EmailMessage(BaseModel):
    """A rendered email. No further processing happens before sending."""

    from_name: str
    from_email: str
    to_name: str = ""
    to_email: str
    subject: str
    text: str
    html: str
    reply_to: str = ""
    ics: str = ""


class MessageItem(BaseModel):
    """One message as it appears in a thread or digest email."""

    name: str
    body: str
    photos: list[str] = Field(default_factory=list)
    link_url: str = ""
    link_title: str = ""


class ThreadItem(BaseModel):
    subject: str
    messages: list[MessageItem] = Field(default_factory=list)


class EventItem(BaseModel):
    name: str
    address: str = ""
    time: str = ""
    description: str = ""
    from_name: str = ""
    message: str = ""
    magic_link: Optional[str] = None
    button_text: str = ""


class DigestItem(BaseModel):
    """A thread or event with the messages its recipient has not read."""

    parent: Key
    name: str
    messages: list[Message] = Field(default_factory=list)
