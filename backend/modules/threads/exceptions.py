"""
Threads module exceptions.
"""

from shared.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError


class ThreadNotFoundError(NotFoundError):
    """Raised when a thread does not exist."""

    def __init__(self, thread_id: str):
        super().__init__(
            f"Thread not found: {thread_id}",
            code="THREAD_NOT_FOUND",
            details={"thread_id": thread_id},
        )


class ThreadAccessDeniedError(AuthorizationError):
    """Raised when a user may not act on a thread."""

    def __init__(self, thread_id: str, user_id: str):
        super().__init__(
            f"Access denied to thread: {thread_id}",
            code="THREAD_ACCESS_DENIED",
            details={"thread_id": thread_id, "user_id": user_id},
        )


class UnverifiedOwnerError(ValidationError):
    """Raised when an unregistered user tries to start a thread."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Unregistered user cannot create threads: {user_id}",
            code="THREAD_OWNER_UNVERIFIED",
            messages={"message": "You must verify your account before you can create Convos"},
        )


class ThreadMembershipError(ConflictError):
    """Raised when a membership change breaks a thread rule."""

    def __init__(self, thread_id: str, message: str):
        super().__init__(
            f"Thread {thread_id or '(new)'}: {message}",
            code="THREAD_MEMBERSHIP",
            details={"thread_id": thread_id},
            messages={"message": message},
        )
