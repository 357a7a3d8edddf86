"""
Email queue module exceptions.
"""

from shared.exceptions import ExternalServiceError, ValidationError


class InvalidEmailJobError(ValidationError):
    """Raised when a job's action is not valid for its type."""

    def __init__(self, email_type: str, action: str):
        super().__init__(
            f"'{action}' is not a valid action for email type {email_type}",
            code="INVALID_EMAIL_JOB",
            details={"type": email_type, "action": action},
        )


class EnqueueError(ExternalServiceError):
    """Raised when the task queue rejects a job."""

    def __init__(self, reason: str):
        super().__init__(
            f"Could not enqueue email job: {reason}",
            service="task_queue",
            code="ENQUEUE_FAILED",
        )
