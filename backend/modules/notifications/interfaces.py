"""
Notifications module interface.
"""

from typing import Protocol, runtime_checkable

from .models import Notification


@runtime_checkable
class INotifier(Protocol):
    """
    Interface for push notifications.
    """

    async def put(self, notification: Notification) -> None:
        """
        Deliver a notification to every recipient feed.

        Raises:
            NotificationDeliveryError: If the gateway rejects a delivery
        """
        ...

    def generate_token(self, user_id: str) -> str:
        """
        Create a read-only realtime token for a user's notification feed.

        Args:
            user_id: External id of the user

        Returns:
            Token the client uses to subscribe to its feed
        """
        ...
