"""
Push notification delivery.

StreamNotifier writes activities to per-user "notification" feeds through
the Stream REST API. Server requests and client realtime tokens are both
HS256 JWTs signed with the API secret.
"""

import logging

import httpx
import jwt  # PyJWT

from .interfaces import INotifier
from .models import Notification
from .exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)

FEED_GROUP = "notification"
NULL_TOKEN = "nullToken"


class StreamNotifier(INotifier):
    """Notifier backed by Stream notification feeds."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        api_url: str,
        timeout: float = 10.0,
    ):
        self._api_key = api_key
        self._api_secret = api_secret
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    def _feed_id(self, user_id: str) -> str:
        return f"{FEED_GROUP}{user_id}"

    def _sign(self, feed_id: str, action: str) -> str:
        claims = {"resource": "*", "action": action, "feed_id": feed_id}
        return jwt.encode(claims, self._api_secret, algorithm="HS256")

    async def put(self, notification: Notification) -> None:
        activity = notification.activity()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for key in notification.user_keys:
                user_id = key.encode()
                feed_id = self._feed_id(user_id)
                try:
                    response = await client.post(
                        f"{self._api_url}/feed/{FEED_GROUP}/{user_id}/",
                        params={"api_key": self._api_key},
                        headers={
                            "Authorization": self._sign(feed_id, "write"),
                            "Stream-Auth-Type": "jwt",
                        },
                        json=activity,
                    )
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    raise NotificationDeliveryError(user_id, str(e))

    def generate_token(self, user_id: str) -> str:
        return self._sign(self._feed_id(user_id), "read")


class LoggingNotifier(INotifier):
    """
    Notifier for local development and tests.

    Logs each notification and keeps it in ``sent``.
    """

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def put(self, notification: Notification) -> None:
        logger.info(
            "notification.put(actor=%s, verb=%s, target=%s, target_id=%s, recipients=%d)",
            notification.actor,
            notification.verb.value,
            notification.target.value,
            notification.target_id,
            len(notification.user_keys),
        )
        self.sent.append(notification)

    def generate_token(self, user_id: str) -> str:
        return NULL_TOKEN


def build_notifier(api_key: str, api_secret: str, api_url: str) -> INotifier:
    """Use Stream when credentials are configured."""
    if not api_key or not api_secret:
        logger.warning("Stream credentials not set, using logging notifier")
        return LoggingNotifier()
    return StreamNotifier(api_key, api_secret, api_url)
