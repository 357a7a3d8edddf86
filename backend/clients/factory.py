"""Factory functions for external collaborators.

Each factory returns the network implementation when its settings are
present and the in-process one otherwise.
"""

import logging

from shared.config import Settings

from .base import BlobStore, LinkPreviewer, OAuthClient, PlacesClient, SearchIndex, SignatureStripper
from .oauth import ProviderOAuthClient
from .opengraph import HttpLinkPreviewer
from .places import GooglePlacesClient, StaticPlacesClient
from .search import ElasticsearchIndex, MemorySearchIndex
from .sigstrip import HttpSignatureStripper, PassthroughSignatureStripper
from .storage import MemoryBlobStore, SupabaseBlobStore

logger = logging.getLogger(__name__)


def get_link_previewer(settings: Settings) -> LinkPreviewer:
    return HttpLinkPreviewer(timeout=min(settings.http_timeout_seconds, 5.0))


def get_places_client(settings: Settings) -> PlacesClient:
    if not settings.google_places_api_key:
        return StaticPlacesClient()
    return GooglePlacesClient(
        settings.google_places_api_key,
        settings.google_places_url,
        timeout=settings.http_timeout_seconds,
    )


def get_oauth_client(settings: Settings) -> OAuthClient:
    return ProviderOAuthClient(
        google_client_id=settings.google_oauth_client_id,
        google_tokeninfo_url=settings.google_tokeninfo_url,
        facebook_graph_url=settings.facebook_graph_url,
        timeout=settings.http_timeout_seconds,
    )


def get_search_index(settings: Settings) -> SearchIndex:
    if not settings.search_url:
        logger.warning("SEARCH_URL not set, using in-memory search index")
        return MemorySearchIndex()
    return ElasticsearchIndex(settings.search_url, settings.search_index, settings.http_timeout_seconds)


def get_blob_store(settings: Settings) -> BlobStore:
    if not settings.supabase_url:
        logger.warning("Supabase not configured, keeping blobs in memory")
        return MemoryBlobStore()
    from shared.database import get_supabase_client
    return SupabaseBlobStore(get_supabase_client(settings), settings.storage_bucket)


def get_signature_stripper(settings: Settings) -> SignatureStripper:
    if not settings.sigstrip_url:
        return PassthroughSignatureStripper()
    return HttpSignatureStripper(settings.sigstrip_url, settings.http_timeout_seconds)
