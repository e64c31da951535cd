"""Sitemap parsing and URL extraction."""

import gzip
import logging
import xml.etree.ElementTree as ET
from typing import Iterable, Optional
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)

DEFAULT_SITEMAP_PATHS = [
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
]

_GZIP_MAGIC = b"\x1f\x8b"


def _local_name(tag: str) -> str:
    """Strip an XML namespace: ``{http://...}loc`` -> ``loc``."""
    return tag.rsplit("}", 1)[-1]


def _child_locs(root: ET.Element, entry_name: str) -> list[str]:
    """Collect ``<entry><loc>`` texts, whatever namespace the document uses."""
    locs: list[str] = []
    for entry in root:
        if _local_name(entry.tag) != entry_name:
            continue
        for child in entry:
            if _local_name(child.tag) == "loc" and child.text and child.text.strip():
                locs.append(child.text.strip())
                break
    return locs


def parse_sitemap_document(content: bytes) -> tuple[str, list[str]]:
    """Parse a sitemap or sitemap index.

    Args:
        content: Raw document bytes, optionally gzip-compressed.

    Returns:
        ``("sitemapindex", sub-sitemap URLs)``, ``("urlset", page URLs)``, or
        ``("unknown", [])`` for documents of any other shape.

    Raises:
        ET.ParseError: If the document is not well-formed XML.
    """
    if content[:2] == _GZIP_MAGIC:
        content = gzip.decompress(content)

    root = ET.fromstring(content)
    kind = _local_name(root.tag)

    if kind == "sitemapindex":
        return kind, _child_locs(root, "sitemap")
    if kind == "urlset":
        return kind, _child_locs(root, "url")
    return "unknown", []


class SitemapResolver:
    """Discovers and flattens sitemaps into a capped list of page URLs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_urls: int = 500,
        timeout: float = 10.0,
        max_depth: int = 3,
    ):
        """Initialize sitemap resolver.

        Args:
            client: HTTP client.
            max_urls: Maximum number of URLs to return.
            timeout: Per-document request timeout in seconds.
            max_depth: Maximum sitemap-index nesting to follow.
        """
        self.client = client
        self.max_urls = max_urls
        self.timeout = timeout
        self.max_depth = max_depth

    def candidates(self, origin: str, hints: Iterable[str] = ()) -> list[str]:
        """List sitemap URLs to try: robots.txt hints first, then conventional paths."""
        ordered: list[str] = []
        for url in [*hints, *(urljoin(origin, path) for path in DEFAULT_SITEMAP_PATHS)]:
            try:
                url = urljoin(origin, url.strip())
            except ValueError:
                logger.warning("Ignoring malformed sitemap URL %r", url)
                continue
            if url not in ordered:
                ordered.append(url)
        return ordered

    async def resolve(self, origin: str, hints: Iterable[str] = ()) -> list[str]:
        """Resolve the page URLs listed in the site's sitemaps.

        The first candidate that yields any URL wins.

        Args:
            origin: Origin of the site.
            hints: Sitemap URLs announced in robots.txt.

        Returns:
            Page URLs in document order, at most ``max_urls``.
        """
        for sitemap_url in self.candidates(origin, hints):
            logger.debug("Trying sitemap: %s", sitemap_url)
            urls = await self._parse_sitemap(sitemap_url, seen=set(), depth=0)
            if urls:
                logger.info("Found %d URLs in sitemap %s", len(urls), sitemap_url)
                return urls[: self.max_urls]

        logger.info("No usable sitemap found for %s", origin)
        return []

    async def _fetch(self, sitemap_url: str) -> Optional[bytes]:
        try:
            response = await self.client.get(sitemap_url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Sitemap not reachable: %s (%s)", sitemap_url, e)
            return None

        if response.status_code != 200:
            logger.debug("Sitemap not found: %s (HTTP %s)", sitemap_url, response.status_code)
            return None

        return response.content

    async def _parse_sitemap(self, sitemap_url: str, seen: set[str], depth: int) -> list[str]:
        """Parse a sitemap or sitemap index, following index entries.

        Args:
            sitemap_url: URL of the sitemap.
            seen: Sitemap URLs already visited during this resolution.
            depth: Current index nesting level.

        Returns:
            List of URLs.
        """
        if sitemap_url in seen:
            logger.warning("Skipping already-visited sitemap %s", sitemap_url)
            return []
        if depth > self.max_depth:
            logger.warning("Sitemap nesting too deep, skipping %s", sitemap_url)
            return []
        seen.add(sitemap_url)

        content = await self._fetch(sitemap_url)
        if content is None:
            return []

        try:
            kind, locs = parse_sitemap_document(content)
        except (ET.ParseError, OSError, EOFError) as e:
            # OSError/EOFError come from corrupt gzip payloads
            logger.warning("Sitemap not valid XML: %s (%s)", sitemap_url, e)
            return []

        if kind == "urlset":
            return locs[: self.max_urls]

        urls: list[str] = []
        for sub_sitemap in locs:
            urls.extend(await self._parse_sitemap(sub_sitemap, seen, depth + 1))
            if len(urls) >= self.max_urls:
                break

        return urls
