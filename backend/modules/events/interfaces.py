"""
Events module interface.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import Pagination
from modules.messages.models import Message, MessageView
from modules.users.models import User

from .models import (
    CreateEventRequest,
    Event,
    EventView,
    InviteLinkRequest,
    RsvpLinkRequest,
    UpdateEventRequest,
)


@runtime_checkable
class IEventService(Protocol):
    """
    Interface for events, their guests, RSVPs and messages.

    Every operation taking a ``user`` checks that the user may act on the
    event. Permission failures are reported as not found.
    """

    async def create_event(self, owner: User, request: CreateEventRequest) -> Event:
        """
        Schedule an event and queue the invitations.

        Raises:
            UnverifiedOwnerError: If ``owner`` is not registered
            EventValidationError: If the event is in the past
            EventMembershipError: If there would be more than 300 guests
            InvalidUsersError: If a user reference cannot be resolved
        """
        ...

    async def get_events(self, user: User, pagination: Optional[Pagination] = None) -> list[Event]:
        """Events ``user`` is invited to, newest first."""
        ...

    async def get_event(self, event_id: str, user: User) -> Event:
        """
        Raises:
            EventNotFoundError: If the event does not exist
            EventAccessDeniedError: If ``user`` is not a guest
        """
        ...

    async def update_event(self, event_id: str, user: User, request: UpdateEventRequest) -> Event:
        """
        Change event details. Owner only, and only before the event starts.

        Raises:
            PastEventError: If the event already started
        """
        ...

    async def delete_event(self, event_id: str, user: User, message: str = "") -> Event:
        """
        Cancel an event. Guests of a future event are emailed ``message``.
        """
        ...

    async def add_user(self, event_id: str, actor: User, user_ref: str) -> Event:
        """
        Invite someone by id or by email address.

        Allowed for the owner, hosts and, when the event allows it, any guest.
        """
        ...

    async def remove_user(self, event_id: str, actor: User, user_id: str) -> Event:
        """Remove a guest. The owner may remove anyone else; guests may leave."""
        ...

    async def add_rsvp(self, event_id: str, user: User) -> Event:
        """
        Raises:
            EventMembershipError: If ``user`` owns the event or already RSVP'd
        """
        ...

    async def remove_rsvp(self, event_id: str, user: User) -> Event:
        ...

    async def get_invite_link(self, event_id: str, user: User) -> str:
        """Invite link for the event. Owner and hosts only."""
        ...

    async def roll_invite_link(self, event_id: str, user: User) -> str:
        """Revoke outstanding invite and RSVP links. Owner only."""
        ...

    async def join_by_link(self, event_id: str, user: User, request: InviteLinkRequest) -> Event:
        """
        Join and RSVP through an invite link.

        Raises:
            InvalidSignatureError: If the link was revoked or tampered with
        """
        ...

    async def rsvp_by_link(self, request: RsvpLinkRequest) -> User:
        """
        RSVP an emailed guest without requiring a login.

        Following the link verifies the guest's primary email.
        """
        ...

    async def get_messages(self, event_id: str, user: User) -> list[Message]:
        ...

    async def add_message(self, event_id: str, author: User, body: str, blob: str = "") -> Message:
        ...

    async def delete_message(self, event_id: str, user: User, message_id: str) -> Message:
        ...

    async def mark_read(self, event_id: str, user: User) -> Event:
        ...

    async def event_view(self, event: Event) -> EventView:
        ...

    async def event_views(self, events: list[Event]) -> list[EventView]:
        ...

    async def message_views(self, messages: list[Message]) -> list[MessageView]:
        ...
