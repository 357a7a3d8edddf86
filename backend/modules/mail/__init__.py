"""
Mail module.

Renders and sends transactional email: verification, password reset,
account merge, thread updates, event invitations with calendar
attachments, cancellations, the digest and the inbound mail explainers.

Public API:
- IMailer: Interface for the outbound email gateway
- EmailMessage: A rendered email
- DigestItem: A thread or event and its unread messages, as the digest lists it
"""

from .interfaces import IMailer
from .models import DigestItem, EmailMessage, EventItem, MessageItem, ThreadItem
from .exceptions import MailDeliveryError

__all__ = [
    # Interface
    "IMailer",
    # Models
    "DigestItem",
    "EmailMessage",
    "EventItem",
    "MessageItem",
    "ThreadItem",
    # Exceptions
    "MailDeliveryError",
]
