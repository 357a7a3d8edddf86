"""
Magic links module exceptions.
"""

from shared.exceptions import AuthenticationError, ValidationError


class MagicLinkError(AuthenticationError):
    """Base exception for links that fail verification."""

    pass


class InvalidSignatureError(MagicLinkError):
    """Raised when a link's signature does not match its contents."""

    def __init__(self, subject_id: str):
        super().__init__(
            f"Invalid magic link signature for {subject_id}",
            code="MAGIC_LINK_INVALID",
            details={"subject_id": subject_id},
        )


class ExpiredLinkError(MagicLinkError):
    """Raised when a link is older than its freshness window."""

    def __init__(self, b64ts: str, reason: str = "TooOld"):
        super().__init__(
            f"Magic link rejected: {reason}",
            code="MAGIC_LINK_EXPIRED",
            details={"timestamp": b64ts},
        )


class MalformedTimestampError(ValidationError):
    """Raised when a link timestamp cannot be decoded."""

    def __init__(self, b64ts: str):
        super().__init__(
            f"Malformed magic link timestamp: {b64ts}",
            code="MAGIC_LINK_TIMESTAMP",
            details={"timestamp": b64ts},
        )
