"""
Email queue module interface.
"""

from typing import Protocol, runtime_checkable

from .models import EmailPayload


@runtime_checkable
class IEmailQueue(Protocol):
    """
    Interface for enqueueing outbound email jobs.
    """

    async def put_email(self, payload: EmailPayload) -> None:
        """
        Enqueue an email job.

        Raises:
            InvalidEmailJobError: If the (type, action) pair is not allowed
            EnqueueError: If the queue rejects the job
        """
        ...
