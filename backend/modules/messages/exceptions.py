"""
Messages module exceptions.
"""

from shared.exceptions import AuthorizationError, NotFoundError, ValidationError


class MessageNotFoundError(NotFoundError):
    """Raised when a message does not exist."""

    def __init__(self, message_id: str):
        super().__init__(
            f"Message not found: {message_id}",
            code="MESSAGE_NOT_FOUND",
            details={"message_id": message_id},
        )


class MessageAccessDeniedError(AuthorizationError):
    """Raised when a user may not act on a message."""

    def __init__(self, message_id: str, user_id: str):
        super().__init__(
            f"Access denied to message: {message_id}",
            code="MESSAGE_ACCESS_DENIED",
            details={"message_id": message_id, "user_id": user_id},
        )


class AnchorMessageError(ValidationError):
    """Raised when deleting the first message of a thread."""

    def __init__(self, message_id: str):
        super().__init__(
            f"Cannot delete anchor message: {message_id}",
            code="ANCHOR_MESSAGE",
            details={"message_id": message_id},
            messages={"message": "You cannot delete this message"},
        )


class EmptyMessageError(ValidationError):
    """Raised when a message has neither a body nor a photo."""

    def __init__(self):
        super().__init__(
            "Message has no body",
            code="EMPTY_MESSAGE",
            messages={"body": "This field is required"},
        )

