"""Domain normalization - pick the origin to crawl."""

import asyncio
import logging
from urllib.parse import urljoin, urlparse

import httpx

from urlscout.discovery.errors import InvalidDomainError
from urlscout.discovery.url_utils import get_base_url, is_probeable_host, is_valid_url

logger = logging.getLogger(__name__)


def parse_origin(raw_domain: str) -> str:
    """Turn user input into an origin, assuming ``https://`` when no scheme is given.

    Args:
        raw_domain: Bare host, host with path, or full URL.

    Returns:
        Origin such as ``https://example.com``.

    Raises:
        InvalidDomainError: If no valid http(s) origin can be derived.
    """
    candidate = raw_domain.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        raise InvalidDomainError(raw_domain)

    if "://" not in candidate:
        candidate = f"https://{candidate}"

    try:
        # Accessing .port rejects non-numeric or out-of-range ports
        urlparse(candidate).port
    except ValueError:
        raise InvalidDomainError(raw_domain) from None

    if not is_valid_url(candidate):
        raise InvalidDomainError(raw_domain)

    return get_base_url(candidate)


async def sitemap_exists(client: httpx.AsyncClient, origin: str, timeout: float = 3.0) -> bool:
    """Check whether ``<origin>/sitemap.xml`` answers with HTTP 200."""
    try:
        response = await client.get(urljoin(origin, "/sitemap.xml"), timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug("Sitemap probe failed for %s: %s", origin, e)
        return False
    return response.status_code == 200


class DomainNormalizer:
    """Resolves the canonical origin (apex or ``www.``) for a domain."""

    def __init__(self, client: httpx.AsyncClient, probe_timeout: float = 3.0):
        """Initialize normalizer.

        Args:
            client: HTTP client used for sitemap probes.
            probe_timeout: Timeout for each probe in seconds.
        """
        self.client = client
        self.probe_timeout = probe_timeout

    async def resolve(self, raw_domain: str) -> str:
        """Resolve *raw_domain* to the origin that should be crawled.

        The ``www.`` variant is only preferred when it serves a sitemap and
        the apex does not.

        Raises:
            InvalidDomainError: If the domain cannot be parsed.
        """
        origin = parse_origin(raw_domain)
        parsed = urlparse(origin)
        host = parsed.hostname or ""

        if host.startswith("www.") or not is_probeable_host(host):
            return origin

        www_origin = f"{parsed.scheme}://www.{parsed.netloc}"
        has_base, has_www = await asyncio.gather(
            sitemap_exists(self.client, origin, self.probe_timeout),
            sitemap_exists(self.client, www_origin, self.probe_timeout),
        )

        logger.info(
            "Testing domains: base=%s (sitemap: %s), www=%s (sitemap: %s)",
            origin,
            has_base,
            www_origin,
            has_www,
        )

        if has_www and not has_base:
            logger.info("Using www version: %s", www_origin)
            return www_origin

        return origin
