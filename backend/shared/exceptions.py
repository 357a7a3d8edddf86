"""
Base exception classes for the Convo backend.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application: every error
carries a stable code, an HTTP status, an optional map of user-facing
messages and a trail of the operations it passed through on its way up.
"""

from typing import Optional, Any


class ConvoError(Exception):
    """
    Base exception for all Convo errors.

    All custom exceptions should inherit from this class.

    Attributes:
        message: Internal description, logged but never shown to users
        code: Stable machine-readable code
        details: Extra structured context for logs
        messages: User-facing messages keyed by field (or "message")
        status_code: HTTP status the API layer should respond with
        ops: Operation labels, outermost first
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        messages: Optional[dict[str, str]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.messages = messages or {}
        if status_code is not None:
            self.status_code = status_code
        self.ops: list[str] = []

    def with_op(self, op: str) -> "ConvoError":
        """Record that the error passed through the given operation."""
        self.ops.insert(0, op)
        return self

    @property
    def op_trail(self) -> str:
        return ": ".join(self.ops)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logs and debugging."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "ops": list(self.ops),
        }


class ValidationError(ConvoError):
    """Input validation failed."""

    status_code = 400


class ConflictError(ConvoError):
    """The change collides with existing state (duplicates, size limits)."""

    status_code = 400


class AuthenticationError(ConvoError):
    """Authentication failed (invalid or missing credentials, bad magic link)."""

    status_code = 401


class AuthorizationError(ConvoError):
    """
    Authorization failed (insufficient permissions).

    Reported to clients as not-found so resources cannot be enumerated.
    """

    status_code = 404


class NotFoundError(ConvoError):
    """Resource not found."""

    status_code = 404


class UnsupportedMediaTypeError(ConvoError):
    """Request body has the wrong content type."""

    status_code = 415


class IntegrityError(ConvoError):
    """Stored data violates a uniqueness or shape invariant."""

    status_code = 500


class ExternalServiceError(ConvoError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
