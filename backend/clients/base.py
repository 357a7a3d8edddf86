"""Base classes and models for external collaborators.

Every outside service the backend talks to sits behind one of these
interfaces. Each has a network implementation and an in-process one used
for local development and tests; ``factory`` picks between them from
settings.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field


class LinkData(BaseModel):
    """Link preview extracted from a message body.

    Attributes:
        url: Canonical URL of the page
        image: Preview image URL
        favicon: Site icon URL
        title: Page title
        site: Provider or site name
        description: Page description
        html: Embeddable HTML (oEmbed providers only)
        original: URL exactly as it appeared in the text (never serialized)
    """

    url: str = ""
    image: str = ""
    favicon: str = ""
    title: str = ""
    site: str = ""
    description: str = ""
    html: str = ""
    original: str = Field(default="", exclude=True)


class Place(BaseModel):
    """Resolved place details. ``utc_offset`` is in seconds."""

    place_id: str
    address: str
    lat: float = 0.0
    lng: float = 0.0
    utc_offset: int = 0


class OAuthIdentity(BaseModel):
    """Identity asserted by an OAuth provider."""

    id: str
    provider: str
    email: str
    first_name: str = ""
    last_name: str = ""
    temp_avatar: str = ""


class SearchHit(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    avatar: str = ""


class LinkPreviewer(ABC):
    @abstractmethod
    async def extract(self, text: str) -> Optional[LinkData]:
        """Return a preview for the first URL in ``text``, or None.

        Never raises; failures are logged.
        """
        pass


class PlacesClient(ABC):
    @abstractmethod
    async def resolve(self, place_id: str) -> Place:
        """Resolve a place id.

        Raises:
            ValidationError: If the place cannot be resolved
        """
        pass


class OAuthClient(ABC):
    @abstractmethod
    async def verify(self, provider: str, token: str) -> OAuthIdentity:
        """Exchange a provider token for the identity it belongs to.

        Raises:
            AuthenticationError: If the token is rejected
        """
        pass


class SearchIndex(ABC):
    @abstractmethod
    async def upsert(self, hit: SearchHit) -> None:
        pass

    @abstractmethod
    async def remove(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[SearchHit]:
        pass


class BlobStore(ABC):
    @abstractmethod
    async def put_photo(self, parent_id: str, data: bytes) -> str:
        """Store a message photo under the parent's id and return its URL."""
        pass

    @abstractmethod
    async def put_avatar(self, data: bytes, old_url: str = "") -> str:
        """Store an avatar image, dropping the previous one, and return its URL."""
        pass

    @abstractmethod
    async def put_avatar_from_url(self, url: str) -> str:
        """Copy a remote avatar into the store and return its URL."""
        pass

    @abstractmethod
    async def delete_photo(self, url: str) -> None:
        pass


class SignatureStripper(ABC):
    @abstractmethod
    async def strip(self, body: str, sender: str) -> str:
        """Remove quoted replies and signatures from an email body."""
        pass
