"""Shared fixtures: an in-memory website and a scripted page renderer."""

import asyncio
import gzip
from typing import Callable, Optional

import httpx
import pytest
import respx

from urlscout.render.base import FetchError, RenderedPage


def urlset(*urls: str) -> str:
    """Build a ``<urlset>`` sitemap document."""
    entries = "".join(f"<url><loc>{url}</loc></url>" for url in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def sitemap_index(*urls: str) -> str:
    """Build a ``<sitemapindex>`` document."""
    entries = "".join(f"<sitemap><loc>{url}</loc></sitemap>" for url in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )


def html_page(*hrefs: str) -> str:
    links = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><head><title>Page</title></head><body>{links}</body></html>"


def gzipped(text: str) -> bytes:
    return gzip.compress(text.encode("utf-8"))


class FakeSite:
    """Serves canned responses by absolute URL; anything else is a 404."""

    def __init__(self):
        self._routes: dict[str, tuple[int, bytes, dict[str, str]]] = {}
        self._errors: dict[str, Exception] = {}
        self.requests: list[str] = []

    def add(
        self,
        url: str,
        body: str | bytes = "",
        status: int = 200,
        content_type: str = "text/html",
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        content = body.encode("utf-8") if isinstance(body, str) else body
        self._routes[url] = (status, content, {"content-type": content_type, **(headers or {})})

    def add_sitemap(self, url: str, document: str | bytes) -> None:
        self.add(url, document, content_type="application/xml")

    def add_robots(self, origin: str, content: str) -> None:
        self.add(f"{origin}/robots.txt", content, content_type="text/plain")

    def fail(self, url: str, error: Optional[Exception] = None) -> None:
        self._errors[url] = error or httpx.ConnectError("connection refused")

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)

        if url in self._errors:
            raise self._errors[url]

        route = self._routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")

        status, content, headers = route
        return httpx.Response(status, content=content, headers=headers)

    def client(self) -> httpx.AsyncClient:
        """Client wired straight to this site, bypassing any global mocking."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle), follow_redirects=True)


class FakeRenderer:
    """Page renderer that returns scripted anchors instead of loading pages."""

    def __init__(
        self,
        pages: Optional[dict[str, list[str]]] = None,
        failing: tuple[str, ...] = (),
        delay: float = 0.0,
        links_for: Optional[Callable[[str], list[str]]] = None,
    ):
        self.pages = pages or {}
        self.failing = set(failing)
        self.delay = delay
        self.links_for = links_for
        self.fetched: list[str] = []

    async def fetch(
        self,
        url: str,
        timeout: float = 10.0,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        self.fetched.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url in self.failing:
            raise FetchError(url, "net::ERR_CONNECTION_REFUSED")

        hrefs = self.links_for(url) if self.links_for else self.pages.get(url, [])
        return RenderedPage(final_url=url, anchor_hrefs=list(hrefs))


@pytest.fixture
def site():
    """A FakeSite answering every httpx request made during the test."""
    fake = FakeSite()
    with respx.mock(assert_all_called=False) as router:
        router.route().mock(side_effect=fake.handle)
        yield fake


@pytest.fixture
def offline_site():
    """A FakeSite reachable only through ``offline_site.client()``."""
    return FakeSite()
