"""Full-name search index for users."""

import logging

import httpx

from shared.exceptions import ExternalServiceError

from .base import SearchHit, SearchIndex

logger = logging.getLogger(__name__)


class ElasticsearchIndex(SearchIndex):
    """User documents in an Elasticsearch index, queried with fuzzy matching."""

    def __init__(self, base_url: str, index: str, timeout: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self._index = index
        self._timeout = timeout

    async def _request(self, method: str, path: str, json: dict | None = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, f"{self._base_url}/{self._index}{path}", json=json)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Search request failed: {e}", service="search")
        if response.status_code >= 400 and response.status_code != 404:
            raise ExternalServiceError(
                f"Search returned {response.status_code}", service="search"
            )
        return response

    async def upsert(self, hit: SearchHit) -> None:
        document = {
            "id": hit.id,
            "firstName": hit.first_name,
            "lastName": hit.last_name,
            "fullName": hit.full_name,
            "avatar": hit.avatar,
        }
        await self._request("PUT", f"/_doc/{hit.id}", json=document)

    async def remove(self, user_id: str) -> None:
        await self._request("DELETE", f"/_doc/{user_id}")

    async def search(self, query: str, limit: int = 10) -> list[SearchHit]:
        body = {
            "size": limit,
            "query": {
                "multi_match": {
                    "query": query,
                    "fuzziness": 3,
                    "prefix_length": 1,
                    "fields": ["fullName", "firstName", "lastName"],
                }
            },
        }
        response = await self._request("POST", "/_search", json=body)
        hits = response.json().get("hits", {}).get("hits", [])
        return [
            SearchHit(
                id=source.get("id", ""),
                first_name=source.get("firstName", ""),
                last_name=source.get("lastName", ""),
                full_name=source.get("fullName", ""),
                avatar=source.get("avatar", ""),
            )
            for source in (hit.get("_source", {}) for hit in hits)
        ]


class MemorySearchIndex(SearchIndex):
    """In-memory index used by tests and local development."""

    def __init__(self):
        self._documents: dict[str, SearchHit] = {}

    @property
    def documents(self) -> dict[str, SearchHit]:
        return self._documents

    async def upsert(self, hit: SearchHit) -> None:
        self._documents[hit.id] = hit
        logger.debug("search.upsert", extra={"id": hit.id})

    async def remove(self, user_id: str) -> None:
        self._documents.pop(user_id, None)

    async def search(self, query: str, limit: int = 10) -> list[SearchHit]:
        terms = query.lower().split()
        hits = [
            hit
            for hit in self._documents.values()
            if all(term in hit.full_name.lower() for term in terms)
        ]
        return hits[:limit]
