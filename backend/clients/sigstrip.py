"""Signature and quoted-reply stripping for inbound email."""

import logging

import httpx

from shared.exceptions import ExternalServiceError

from .base import SignatureStripper

logger = logging.getLogger(__name__)


class HttpSignatureStripper(SignatureStripper):
    """Calls the sigstrip microservice: POST {body, sender} -> {text}."""

    def __init__(self, url: str, timeout: float = 10.0):
        self._url = url
        self._timeout = timeout

    async def strip(self, body: str, sender: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json={"body": body, "sender": sender})
                response.raise_for_status()
                return response.json()["text"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise ExternalServiceError(f"Signature stripping failed: {e}", service="sigstrip")


class PassthroughSignatureStripper(SignatureStripper):
    """Returns the body unchanged. For local development."""

    async def strip(self, body: str, sender: str) -> str:
        return body
