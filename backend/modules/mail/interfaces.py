"""
Mail module interfaces.
"""

from typing import Protocol, runtime_checkable

from .models import EmailMessage


@runtime_checkable
class IMailer(Protocol):
    """
    Interface for the outbound email gateway.
    """

    async def send(self, message: EmailMessage) -> None:
        """
        Send one email.

        Raises:
            MailDeliveryError: If the gateway rejects the message
        """
        ...
