"""
Messages module.

Messages belong to a thread or an event (their parent). A message may carry
a link preview and photos, and keeps per-user read markers.

Public API:
- IMessageService: Interface for message operations
- Message, MessageView: Entity and API view
"""

from .interfaces import IMessageService
from .models import Message, MessageView, MessageListResponse, CreateMessageRequest
from .exceptions import (
    MessageNotFoundError,
    MessageAccessDeniedError,
    AnchorMessageError,
    EmptyMessageError,
)

__all__ = [
    # Interface
    "IMessageService",
    # Models
    "Message",
    "MessageView",
    "MessageListResponse",
    "CreateMessageRequest",
    # Exceptions
    "MessageNotFoundError",
    "MessageAccessDeniedError",
    "AnchorMessageError",
    "EmptyMessageError",
]
