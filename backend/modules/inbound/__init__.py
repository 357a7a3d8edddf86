"""
Inbound module.

Turns replies sent to a thread's reply address into thread messages.

Public API:
- InboundRejectedError: Raised for emails that cannot be ingested
"""

from .exceptions import InboundRejectedError

__all__ = [
    # Exceptions
    "InboundRejectedError",
]
