"""
Events module exceptions.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


class EventNotFoundError(NotFoundError):
    """Raised when an event does not exist."""

    def __init__(self, event_id: str):
        super().__init__(
            f"Event not found: {event_id}",
            code="EVENT_NOT_FOUND",
            details={"event_id": event_id},
        )


class EventAccessDeniedError(AuthorizationError):
    """Raised when a user may not act on an event."""

    def __init__(self, event_id: str, user_id: str):
        super().__init__(
            f"Access denied to event: {event_id}",
            code="EVENT_ACCESS_DENIED",
            details={"event_id": event_id, "user_id": user_id},
        )


class EventValidationError(ValidationError):
    """Raised when event fields are invalid."""

    def __init__(self, field: str, message: str):
        super().__init__(
            f"Invalid event {field}: {message}",
            code="EVENT_INVALID",
            details={"field": field},
            messages={field: message},
        )


class PastEventError(ValidationError):
    """Raised when updating an event that already happened."""

    def __init__(self, event_id: str):
        super().__init__(
            f"Event is in the past: {event_id}",
            code="EVENT_IN_PAST",
            details={"event_id": event_id},
            messages={"message": "You cannot update past events"},
        )


class EventMembershipError(ConflictError):
    """Raised when a membership or RSVP change breaks an event rule."""

    def __init__(self, event_id: str, message: str, status_code: Optional[int] = None):
        super().__init__(
            f"Event {event_id or '(new)'}: {message}",
            code="EVENT_MEMBERSHIP",
            details={"event_id": event_id},
            messages={"message": message},
            status_code=status_code,
        )


class NotInvitedError(AuthenticationError):
    """Raised when someone who is not a guest tries to RSVP."""

    def __init__(self, event_id: str, user_id: str):
        super().__init__(
            f"User {user_id} is not invited to {event_id}",
            code="EVENT_NOT_INVITED",
            details={"event_id": event_id, "user_id": user_id},
        )


class UnverifiedOwnerError(ValidationError):
    """Raised when an unregistered user tries to create an event."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Unregistered user cannot create events: {user_id}",
            code="EVENT_OWNER_UNVERIFIED",
            details={"user_id": user_id},
            messages={"message": "You must verify your account before you can create events"},
        )
