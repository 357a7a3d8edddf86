"""
Tasks module exceptions.
"""

from shared.exceptions import NotFoundError


class TaskSourceError(NotFoundError):
    """Raised when a task endpoint is called without the scheduler's header."""

    def __init__(self, header: str):
        super().__init__(
            f"Task request without a valid {header} header",
            code="TASK_SOURCE_INVALID",
            details={"header": header},
            messages={"message": "Not found"},
        )
