"""
Email queue module.

Outbound email is rendered out of band. Request handlers enqueue a small
job ({ids, type, action}); the task worker receives it on /tasks/emails.

Public API:
- IEmailQueue: Interface for enqueueing jobs
- EmailPayload, EmailType, EmailAction: Job payload
"""

from .interfaces import IEmailQueue
from .models import EmailPayload, EmailType, EmailAction, QUEUE_HEADER, CRON_HEADER
from .exceptions import InvalidEmailJobError, EnqueueError

__all__ = [
    # Interface
    "IEmailQueue",
    # Models
    "EmailPayload",
    "EmailType",
    "EmailAction",
    "QUEUE_HEADER",
    "CRON_HEADER",
    # Exceptions
    "InvalidEmailJobError",
    "EnqueueError",
]
