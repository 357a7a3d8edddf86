"""Google Places details lookup."""

import logging

import httpx

from shared.exceptions import ValidationError

from .base import Place, PlacesClient

logger = logging.getLogger(__name__)

DETAIL_FIELDS = "place_id,name,formatted_address,geometry,utc_offset"


class PlaceNotResolvedError(ValidationError):
    """Raised when the places API cannot resolve an id."""

    def __init__(self, place_id: str, reason: str):
        super().__init__(
            f"Could not resolve place {place_id}: {reason}",
            code="PLACE_NOT_RESOLVED",
            details={"place_id": place_id},
            messages={"placeId": "Could not resolve place"},
        )


class GooglePlacesClient(PlacesClient):
    def __init__(self, api_key: str, url: str, timeout: float = 10.0):
        self._api_key = api_key
        self._url = url
        self._timeout = timeout

    async def resolve(self, place_id: str) -> Place:
        params = {"place_id": place_id, "fields": DETAIL_FIELDS, "key": self._api_key}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._url, params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise PlaceNotResolvedError(place_id, str(e))

        if payload.get("status") != "OK":
            raise PlaceNotResolvedError(place_id, payload.get("status", "unknown status"))

        result = payload["result"]
        location = result.get("geometry", {}).get("location", {})
        address = ", ".join(part for part in (result.get("name"), result.get("formatted_address")) if part)

        return Place(
            place_id=result.get("place_id", place_id),
            address=address,
            lat=location.get("lat", 0.0),
            lng=location.get("lng", 0.0),
            # The API reports minutes; events store seconds.
            utc_offset=int(result.get("utc_offset", 0)) * 60,
        )


class StaticPlacesClient(PlacesClient):
    """Resolves every id to a fixed place. For local development."""

    def __init__(self):
        logger.warning("Using static places client; place ids are not resolved")

    async def resolve(self, place_id: str) -> Place:
        logger.info("places.resolve(place_id=%s)", place_id)
        return Place(place_id=place_id, address="1 Infinite Loop", lat=0.0, lng=0.0, utc_offset=0)
