"""
Users module exceptions.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    ConflictError,
    IntegrityError,
    NotFoundError,
    ValidationError,
)


class UserNotFoundError(NotFoundError):
    """Raised when a user does not exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class DuplicateUserError(IntegrityError):
    """Raised when more than one user matches a unique field."""

    def __init__(self, field: str, value: str):
        super().__init__(
            f"field={field!r} value={value!r} is duplicated",
            code="DUPLICATE_USER",
            details={"field": field, "value": value},
        )


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer token does not belong to any user."""

    def __init__(self, reason: str = "Invalid token"):
        super().__init__(
            reason,
            code="INVALID_TOKEN",
            messages={"message": "Unauthorized"},
        )


class InvalidCredentialsError(ValidationError):
    """Raised when email/password authentication fails."""

    def __init__(self, reason: str):
        super().__init__(
            reason,
            code="INVALID_CREDENTIALS",
            messages={"message": "Invalid credentials"},
        )


class AccountLockedError(ValidationError):
    """Raised when a locked user tries to log in with a password."""

    def __init__(self, email: str):
        super().__init__(
            f"Locked account: {email}",
            code="ACCOUNT_LOCKED",
            messages={"message": "You must verify your email before you can login"},
        )


class AlreadyRegisteredError(ConflictError):
    """Raised when signing up with an email that belongs to a registered user."""

    def __init__(self, email: str):
        super().__init__(
            f"Already registered: {email}",
            code="ALREADY_REGISTERED",
            messages={"message": "This email has already been registered"},
        )


class EmailChangeError(ValidationError):
    """Raised when an email list change breaks the primary email rules."""

    def __init__(self, email: str, message: str):
        super().__init__(
            f"Email change rejected for {email}: {message}",
            code="EMAIL_CHANGE_REJECTED",
            messages={"message": message},
        )


class ContactError(ConflictError):
    """Raised when a contact list change is not allowed."""

    def __init__(self, message: str, contact_id: Optional[str] = None):
        super().__init__(
            message,
            code="CONTACT_REJECTED",
            details={"contact_id": contact_id} if contact_id else {},
            messages={"message": message},
        )


class InvalidUsersError(ValidationError):
    """Raised when a list of user references cannot be resolved."""

    def __init__(self, message: str = "Invalid users", field: str = "users"):
        super().__init__(
            message,
            code="INVALID_USERS",
            messages={field: message},
        )


class LinkUserNotFoundError(AuthenticationError):
    """Raised when a magic link names a user that does not exist."""

    def __init__(self, user_id: str, status_code: int = 401):
        super().__init__(
            f"Magic link for unknown user: {user_id}",
            code="LINK_USER_NOT_FOUND",
            details={"user_id": user_id},
            status_code=status_code,
        )


class EmptySearchError(ValidationError):
    """Raised when searching with an empty query."""

    def __init__(self):
        super().__init__(
            "Empty search query",
            code="EMPTY_QUERY",
            messages={"message": "query cannot be empty"},
        )
