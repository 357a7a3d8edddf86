"""
Notifications module exceptions.
"""

from shared.exceptions import ExternalServiceError


class NotificationDeliveryError(ExternalServiceError):
    """Raised when the push gateway rejects an activity."""

    def __init__(self, user_id: str, reason: str):
        super().__init__(
            f"Could not notify {user_id}: {reason}",
            service="stream",
            code="NOTIFICATION_DELIVERY_FAILED",
            details={"user_id": user_id},
        )
