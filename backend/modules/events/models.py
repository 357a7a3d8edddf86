"""
Event entity, API view and request bodies.
"""

from datetime import datetime, timedelta, timezone
from typing import ClassVar, Optional

from pydantic import Field

from shared.entity import Entity
from shared.keys import Key
from shared.models import ApiModel, UserInput
from shared.reads import Read
from shared.tokens import random_token
from shared.validation import UtcDatetime
from modules.threads.models import reply_address
from modules.users.models import UserPartial

MAX_EVENT_USERS = 300
MAX_NAME_LENGTH = 255
MAX_CANCEL_MESSAGE_LENGTH = 255
TIME_FORMAT = "%A, %B {day} @ {hour}:%M %p"

UPCOMING_WINDOW_START = timedelta(hours=6)
UPCOMING_WINDOW_END = timedelta(hours=30)


class Event(Entity):
    """
    A scheduled gathering with invitees, hosts and RSVPs.

    ``token`` salts invite and RSVP links; rolling it revokes them.
    ``utc_offset`` is in seconds and only affects how times are displayed.
    """

    kind: ClassVar[str] = "Event"
    tolerated_fields: ClassVar[frozenset[str]] = frozenset({"guests_can_invite"})

    owner: Key
    hosts: list[Key] = Field(default_factory=list)
    users: list[Key] = Field(default_factory=list)
    rsvps: list[Key] = Field(default_factory=list)
    token: str = Field(default_factory=random_token)
    place_id: str = ""
    address: str = ""
    lat: float = 0.0
    lng: float = 0.0
    name: str = ""
    description: str = ""
    timestamp: UtcDatetime
    utc_offset: int = 0
    reads: list[Read] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    guests_can_invite: bool = False

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def email(self) -> str:
        return reply_address(self.name, self.key.id if self.key else 0)

    def has_user(self, user_key: Optional[Key]) -> bool:
        return user_key in self.users

    def owner_is(self, user_key: Optional[Key]) -> bool:
        return self.owner == user_key

    def host_is(self, user_key: Optional[Key]) -> bool:
        return user_key in self.hosts

    def has_rsvp(self, user_key: Optional[Key]) -> bool:
        return user_key in self.rsvps

    def is_in_future(self, now: Optional[datetime] = None) -> bool:
        return self.timestamp > (now or datetime.now(timezone.utc))

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        """True when the event starts between six and thirty hours from now."""
        now = now or datetime.now(timezone.utc)
        return now + UPCOMING_WINDOW_START < self.timestamp < now + UPCOMING_WINDOW_END

    def formatted_time(self) -> str:
        """Start time in the event's own zone, e.g. "Monday, January 2 @ 3:04 PM"."""
        local = self.timestamp.astimezone(timezone(timedelta(seconds=self.utc_offset)))
        hour = local.hour % 12 or 12
        return local.strftime(TIME_FORMAT.format(day=local.day, hour=hour))

    def roll_token(self) -> None:
        self.token = random_token()


def hosts_differ(current: list[Key], requested: list[Key]) -> bool:
    """True when some current host is missing from ``requested``."""
    return any(key not in requested for key in current)


class EventView(ApiModel):
    id: str
    owner: Optional[UserPartial] = None
    hosts: list[UserPartial] = Field(default_factory=list)
    users: list[UserPartial] = Field(default_factory=list)
    rsvps: list[UserPartial] = Field(default_factory=list)
    place_id: str
    address: str
    lat: float
    lng: float
    name: str
    description: str
    timestamp: UtcDatetime
    reads: list[UserPartial] = Field(default_factory=list)
    created_at: datetime
    guests_can_invite: bool


class EventListResponse(ApiModel):
    events: list[EventView]


class CreateEventRequest(ApiModel):
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    place_id: str = Field(min_length=1)
    timestamp: UtcDatetime
    description: str = ""
    users: list[UserInput] = Field(default_factory=list)
    hosts: list[UserInput] = Field(default_factory=list)
    guests_can_invite: bool = False
    utc_offset: Optional[int] = None


class UpdateEventRequest(ApiModel):
    name: Optional[str] = Field(default=None, max_length=MAX_NAME_LENGTH)
    place_id: Optional[str] = None
    timestamp: Optional[UtcDatetime] = None
    description: Optional[str] = None
    hosts: Optional[list[UserInput]] = None
    guests_can_invite: Optional[bool] = None
    utc_offset: Optional[int] = None
    resend: bool = False


class DeleteEventRequest(ApiModel):
    message: str = Field(default="", max_length=MAX_CANCEL_MESSAGE_LENGTH)


class InviteLinkRequest(ApiModel):
    signature: str = Field(min_length=1)
    timestamp: str = Field(min_length=1)


class RsvpLinkRequest(ApiModel):
    signature: str = Field(min_length=1)
    timestamp: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    event_id: str = Field(min_length=1)


class MagicLinkResponse(ApiModel):
    url: str
