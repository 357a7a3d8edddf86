"""
HMAC-SHA256 magic link implementation.

The signature covers ``subject_id + b64ts + salt`` and is keyed with the
process-wide application secret, loaded once from settings.
"""

import base64
import binascii
import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from shared.keys import Key

from .interfaces import IMagicLinkService
from .exceptions import ExpiredLinkError, InvalidSignatureError, MalformedTimestampError

HOURS_PER_DAY = 24


def format_bool(value: bool) -> str:
    """Encode a boolean for use inside a salt ("true"/"false")."""
    return "true" if value else "false"


def encode_timestamp(moment: datetime) -> str:
    seconds = str(int(moment.timestamp()))
    return base64.urlsafe_b64encode(seconds.encode()).decode()


def decode_timestamp(b64ts: str) -> datetime:
    """
    Decode a link timestamp.

    Raises:
        MalformedTimestampError: If it is not base64 of unix seconds
    """
    try:
        seconds = int(base64.urlsafe_b64decode(b64ts.encode()).decode())
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise MalformedTimestampError(b64ts)
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class MagicLinkService(IMagicLinkService):
    """Mints and verifies magic links with a shared secret."""

    def __init__(self, secret: str, host: str):
        self._secret = secret.encode()
        self._host = host

    def new_link(
        self,
        key: Key,
        salt: str,
        action: str,
        issued_at: Optional[datetime] = None,
    ) -> str:
        subject_id = key.encode()
        b64ts = encode_timestamp(issued_at or datetime.now(timezone.utc))
        signature = self.sign(subject_id, b64ts, salt)
        return f"https://{self._host}/{action}/{subject_id}/{b64ts}/{signature}"

    def sign(self, subject_id: str, b64ts: str, salt: str) -> str:
        digest = hmac.new(self._secret, (subject_id + b64ts + salt).encode(), hashlib.sha256)
        return digest.hexdigest()

    def verify(self, subject_id: str, b64ts: str, salt: str, signature: str) -> None:
        expected = self.sign(subject_id, b64ts, salt)
        if not hmac.compare_digest(expected.encode(), signature.encode()):
            raise InvalidSignatureError(subject_id)

    def check_fresh(self, b64ts: str, days: int = 1) -> None:
        try:
            issued_at = decode_timestamp(b64ts)
        except MalformedTimestampError:
            raise ExpiredLinkError(b64ts, reason="unreadable timestamp")

        age = datetime.now(timezone.utc) - issued_at
        if age > timedelta(hours=HOURS_PER_DAY * days):
            raise ExpiredLinkError(b64ts)
