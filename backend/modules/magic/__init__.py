"""
Magic links module.

Mints and verifies HMAC-signed one-shot URLs. Each link binds an action and
a subject id to a timestamp and to a salt that changes whenever the link
should stop working (password digest, user token, event invite token...).

Public API:
- IMagicLinkService: Interface for minting and verifying links
- MagicLinkError: Base error for rejected links
"""

from .interfaces import IMagicLinkService
from .exceptions import MagicLinkError, InvalidSignatureError, ExpiredLinkError, MalformedTimestampError

__all__ = [
    # Interface
    "IMagicLinkService",
    # Exceptions
    "MagicLinkError",
    "InvalidSignatureError",
    "ExpiredLinkError",
    "MalformedTimestampError",
]
