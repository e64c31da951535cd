"""Plain HTTP page fetching with HTML anchor extraction."""

from typing import Any, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from urlscout.config import DEFAULT_USER_AGENT
from urlscout.render.base import FetchError, RenderedPage

_HTML_TYPES = ("text/html", "application/xhtml+xml")


def extract_anchor_hrefs(html: str, base_url: str) -> list[str]:
    """Return absolute ``href`` values of all ``<a>`` tags in *html*.

    A ``<base href>`` element, when present, takes precedence over
    *base_url*, mirroring what a browser reports for ``a.href``.
    """
    soup = BeautifulSoup(html, "html.parser")

    base_tag = soup.find("base", href=True)
    if base_tag:
        base_url = urljoin(base_url, base_tag["href"])

    hrefs: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if href:
            hrefs.append(urljoin(base_url, href))
    return hrefs


class StaticRenderer:
    """Fetch pages over HTTP without executing JavaScript.

    Cheaper than :class:`~urlscout.render.browser.BrowserRenderer` and needs
    no browser install, but misses links that only exist after scripts run.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """Initialize static renderer.

        Args:
            client: Shared HTTP client; one is created when omitted.
            user_agent: User-Agent header for the created client.
        """
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "StaticRenderer":
        """Async context manager entry."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._owns_client and self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        url: str,
        timeout: float = 10.0,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        """Fetch *url* and collect its anchors.

        ``wait_until`` is accepted for interface compatibility; a static
        fetch is complete once the body has arrived.

        Raises:
            FetchError: On transport errors, error statuses or non-HTML bodies.
        """
        if self._client is None:
            raise RuntimeError("Renderer not initialized. Use 'async with' context.")

        try:
            response = await self._client.get(url, timeout=timeout)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type and content_type not in _HTML_TYPES:
            raise FetchError(url, f"not an HTML page ({content_type})")

        final_url = str(response.url)
        return RenderedPage(final_url=final_url, anchor_hrefs=extract_anchor_hrefs(response.text, final_url))
