"""Clients for the external services the backend depends on."""

from .base import (
    BlobStore,
    LinkData,
    LinkPreviewer,
    OAuthClient,
    OAuthIdentity,
    Place,
    PlacesClient,
    SearchHit,
    SearchIndex,
    SignatureStripper,
)

__all__ = [
    "BlobStore",
    "LinkData",
    "LinkPreviewer",
    "OAuthClient",
    "OAuthIdentity",
    "Place",
    "PlacesClient",
    "SearchHit",
    "SearchIndex",
    "SignatureStripper",
]
