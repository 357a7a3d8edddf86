"""
Mail module exceptions.
"""

from shared.exceptions import ExternalServiceError


class MailDeliveryError(ExternalServiceError):
    """Raised when the mail gateway does not accept a message."""

    def __init__(self, to_email: str, reason: str):
        super().__init__(
            f"Could not send email to {to_email}: {reason}",
            service="smtp",
            code="MAIL_DELIVERY_FAILED",
            details={"to": to_email},
        )
