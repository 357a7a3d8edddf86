"""
Inbound module exceptions.
"""

from shared.exceptions import ValidationError


class InboundRejectedError(ValidationError):
    """
    Raised when an inbound email cannot become a message.

    These are the sender's problem, not ours; the webhook still answers
    200 so the mail provider does not retry.
    """

    def __init__(self, reason: str, sender: str = ""):
        super().__init__(
            f"Inbound email rejected: {reason}",
            code="INBOUND_REJECTED",
            details={"sender": sender} if sender else {},
        )
