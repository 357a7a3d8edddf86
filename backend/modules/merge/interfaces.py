"""
Merge module interface.
"""

from typing import Protocol, runtime_checkable

from modules.users.models import User


@runtime_checkable
class IMergeService(Protocol):
    """
    Interface for consolidating two accounts into one.
    """

    async def merge(self, user: User, other: User) -> User:
        """
        Fold ``other`` into ``user`` and delete ``other``.

        Every contact list, message, thread, event and note that referenced
        ``other`` references ``user`` afterwards. Runs in one transaction
        and is retried on commit conflicts.

        Args:
            user: Account that survives
            other: Account that is merged away

        Returns:
            The surviving user as stored after the merge

        Raises:
            SelfMergeError: If both are the same account
        """
        ...
