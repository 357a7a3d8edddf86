"""
Threads module.

Private group conversations of up to eleven members, each with a reply
address so members can answer from their inbox.

Public API:
- IThreadService: Interface for thread operations
- Thread, ThreadView: Entity and API view
"""

from .interfaces import IThreadService
from .models import Thread, ThreadPreview, ThreadView, ThreadListResponse, MAX_THREAD_USERS
from .exceptions import (
    ThreadNotFoundError,
    ThreadAccessDeniedError,
    UnverifiedOwnerError,
    ThreadMembershipError,
)

__all__ = [
    # Interface
    "IThreadService",
    # Models
    "Thread",
    "ThreadPreview",
    "ThreadView",
    "ThreadListResponse",
    "MAX_THREAD_USERS",
    # Exceptions
    "ThreadNotFoundError",
    "ThreadAccessDeniedError",
    "UnverifiedOwnerError",
    "ThreadMembershipError",
]
