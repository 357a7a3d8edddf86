"""
Merge module exceptions.
"""

from shared.exceptions import ValidationError


class SelfMergeError(ValidationError):
    """Raised when asked to merge an account into itself."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Cannot merge user {user_id} into itself",
            code="SELF_MERGE",
            details={"user_id": user_id},
        )
