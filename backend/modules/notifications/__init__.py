"""
Notifications module.

Push notifications for activity on threads and events. A notification is
delivered once per recipient feed; the acting user is never a recipient.
Delivery is best effort: callers log failures and carry on.

Public API:
- INotifier: Interface for push delivery and realtime tokens
- Notification, Verb, Target: Notification payload
- filter_key: Drop the actor from a recipient list
"""

from .interfaces import INotifier
from .models import Notification, Verb, Target, filter_key
from .exceptions import NotificationDeliveryError

__all__ = [
    # Interface
    "INotifier",
    # Models
    "Notification",
    "Verb",
    "Target",
    "filter_key",
    # Exceptions
    "NotificationDeliveryError",
]
