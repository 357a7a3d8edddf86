"""
Events module.

Scheduled gatherings with hosts, guests and RSVPs. Invitations carry an
iCalendar attachment and a signed RSVP link; the invite link lets anyone
holding it join.

Public API:
- IEventService: Interface for event operations
- Event, EventView: Entity and API view
"""

from .interfaces import IEventService
from .models import Event, EventView, EventListResponse, MAX_EVENT_USERS
from .exceptions import (
    EventNotFoundError,
    EventAccessDeniedError,
    EventValidationError,
    PastEventError,
    EventMembershipError,
    NotInvitedError,
    UnverifiedOwnerError,
)

__all__ = [
    # Interface
    "IEventService",
    # Models
    "Event",
    "EventView",
    "EventListResponse",
    "MAX_EVENT_USERS",
    # Exceptions
    "EventNotFoundError",
    "EventAccessDeniedError",
    "EventValidationError",
    "PastEventError",
    "EventMembershipError",
    "NotInvitedError",
    "UnverifiedOwnerError",
]
