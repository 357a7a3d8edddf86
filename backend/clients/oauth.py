"""OAuth identity verification for Google and Facebook tokens."""

import logging
from typing import Any

import httpx

from shared.exceptions import AuthenticationError, ValidationError

from .base import OAuthClient, OAuthIdentity

logger = logging.getLogger(__name__)

PROVIDERS = ("google", "facebook")


class OAuthVerificationError(AuthenticationError):
    """Raised when a provider rejects a token."""

    def __init__(self, provider: str, reason: str):
        super().__init__(
            f"{provider} token rejected: {reason}",
            code="OAUTH_TOKEN_REJECTED",
            details={"provider": provider},
        )


class UnsupportedProviderError(ValidationError):
    def __init__(self, provider: str):
        super().__init__(
            f"Unsupported OAuth provider: {provider}",
            code="OAUTH_PROVIDER_UNSUPPORTED",
            details={"provider": provider},
            messages={"provider": "Must be one of google or facebook"},
        )


class ProviderOAuthClient(OAuthClient):
    """Verifies Google id tokens and Facebook access tokens over HTTPS."""

    def __init__(
        self,
        google_client_id: str,
        google_tokeninfo_url: str,
        facebook_graph_url: str,
        timeout: float = 10.0,
    ):
        self._google_client_id = google_client_id
        self._google_tokeninfo_url = google_tokeninfo_url
        self._facebook_graph_url = facebook_graph_url.rstrip("/")
        self._timeout = timeout

    async def verify(self, provider: str, token: str) -> OAuthIdentity:
        if provider == "google":
            return await self._verify_google(token)
        if provider == "facebook":
            return await self._verify_facebook(token)
        raise UnsupportedProviderError(provider)

    async def _get_json(self, provider: str, url: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise OAuthVerificationError(provider, str(e))

    async def _verify_google(self, token: str) -> OAuthIdentity:
        data = await self._get_json("google", self._google_tokeninfo_url, {"id_token": token})

        if data.get("aud") != self._google_client_id:
            raise OAuthVerificationError("google", "audience did not match")

        picture = data.get("picture", "")
        return OAuthIdentity(
            id=data["sub"],
            provider="google",
            email=data.get("email", ""),
            first_name=data.get("given_name", ""),
            last_name=data.get("family_name", ""),
            temp_avatar=f"{picture}?sz=256" if picture else "",
        )

    async def _verify_facebook(self, token: str) -> OAuthIdentity:
        data = await self._get_json(
            "facebook",
            f"{self._facebook_graph_url}/me",
            {"fields": "id,email,first_name,last_name", "access_token": token},
        )

        if "id" not in data:
            raise OAuthVerificationError("facebook", "no id in response")

        avatar = (
            f"{self._facebook_graph_url}/{data['id']}/picture"
            f"?type=large&width=256&height=256&access_token={token}"
        )
        return OAuthIdentity(
            id=data["id"],
            provider="facebook",
            email=data.get("email", ""),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            temp_avatar=avatar,
        )
