"""Link previews from OpenGraph metadata and oEmbed endpoints."""

import logging
import re
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from .base import LinkData, LinkPreviewer

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"https?://[^\s<>\"'\[\]]+")
TRAILING_PUNCTUATION = ".,;:!?"

CRAWLER_USER_AGENT = "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)"
YOUTUBE_OEMBED = "https://www.youtube.com/oembed"
TWITTER_OEMBED = "https://publish.twitter.com/oembed"


def find_first_url(text: str) -> Optional[str]:
    """Return the first absolute http(s) URL in ``text``."""
    match = URL_PATTERN.search(text or "")
    if not match:
        return None
    return trim_url(match.group(0))


def trim_url(url: str) -> str:
    """Drop trailing punctuation and any closing parenthesis the URL never opened."""
    while True:
        url = url.rstrip(TRAILING_PUNCTUATION)
        if url.endswith(")") and url.count(")") > url.count("("):
            url = url[:-1]
            continue
        return url


def parse_html(page: str, url: str) -> LinkData:
    """Build a preview from a page's OpenGraph and fallback tags."""
    soup = BeautifulSoup(page, "html.parser")

    def meta(*names: str) -> str:
        for name in names:
            tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
            if tag and tag.get("content"):
                return tag["content"].strip()
        return ""

    title = meta("og:title", "twitter:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()

    favicon = ""
    icon = soup.find("link", rel=lambda rel: rel and "icon" in rel)
    if icon and icon.get("href"):
        favicon = urljoin(url, icon["href"])
    else:
        parsed = urlparse(url)
        favicon = f"{parsed.scheme}://{parsed.netloc}/favicon.ico"

    image = meta("og:image", "twitter:image")

    return LinkData(
        url=meta("og:url") or url,
        title=title,
        site=meta("og:site_name") or urlparse(url).hostname or "",
        description=meta("og:description", "description"),
        image=urljoin(url, image) if image else "",
        favicon=favicon,
        original=url,
    )


class HttpLinkPreviewer(LinkPreviewer):
    """Fetches pages (or oEmbed JSON for YouTube and Twitter) to build previews."""

    def __init__(self, timeout: float = 5.0):
        self._timeout = timeout

    async def extract(self, text: str) -> Optional[LinkData]:
        found = find_first_url(text)
        if found is None:
            return None

        hostname = urlparse(found).hostname or ""
        try:
            if hostname == "youtu.be" or hostname.endswith("youtube.com"):
                return await self._oembed(YOUTUBE_OEMBED, found, "YouTube", "https://www.youtube.com/favicon.ico")
            if hostname.endswith("twitter.com"):
                return await self._oembed(TWITTER_OEMBED, found, "Twitter", "https://twitter.com/favicon.ico")
            return await self._fetch_page(found)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning("Link preview failed for %s: %s", found, e)
            return None

    async def _fetch_page(self, url: str) -> Optional[LinkData]:
        headers = {"User-Agent": CRAWLER_USER_AGENT, "Cache-Control": "no-cache"}
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            response = await client.get(url, headers=headers)
            response.raise_for_status()

        if "html" not in response.headers.get("content-type", "html"):
            logger.info("Skipping link preview for non-HTML content at %s", url)
            return None

        return parse_html(response.text, url)

    async def _oembed(self, endpoint: str, url: str, site: str, favicon: str) -> Optional[LinkData]:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(endpoint, params={"url": url, "format": "json"})
            response.raise_for_status()
            payload: dict[str, Any] = response.json()

        title = payload.get("title") or payload.get("author_name")
        if not title:
            logger.warning("oEmbed response for %s has no title", url)
            return None

        return LinkData(
            url=url,
            title=title,
            site=site,
            favicon=favicon,
            image=payload.get("thumbnail_url", ""),
            html=payload.get("html", ""),
            original=url,
        )
