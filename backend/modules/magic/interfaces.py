"""
Magic links module interface.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from shared.keys import Key


@runtime_checkable
class IMagicLinkService(Protocol):
    """
    Interface for signed one-shot links.

    Links have the form ``https://<host>/<action>/<subject>/<b64ts>/<sig>``.
    """

    def new_link(
        self,
        key: Key,
        salt: str,
        action: str,
        issued_at: Optional[datetime] = None,
    ) -> str:
        """
        Mint a link for the entity identified by ``key``.

        Args:
            key: Subject of the link; its external id is embedded in the URL
            salt: Value that invalidates the link when it changes
            action: Leading URL path segment(s), e.g. "reset" or "rsvp/<event>"
            issued_at: Timestamp to embed, defaults to now

        Returns:
            The full URL
        """
        ...

    def verify(self, subject_id: str, b64ts: str, salt: str, signature: str) -> None:
        """
        Check a link signature.

        Raises:
            InvalidSignatureError: If the signature does not match
        """
        ...

    def check_fresh(self, b64ts: str, days: int = 1) -> None:
        """
        Check that a link was minted within the last ``days`` days.

        Raises:
            ExpiredLinkError: If the link is older, or the timestamp is unreadable
        """
        ...
