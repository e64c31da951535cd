"""Breadth-first link crawling."""

import logging
from typing import AsyncIterator
from urllib.parse import urljoin

from urlscout.config import DiscoveryConfig
from urlscout.discovery.context import DiscoveryContext
from urlscout.discovery.errors import DiscoveryInterrupted
from urlscout.discovery.models import DiscoveredUrl, StopReason, UrlSource
from urlscout.discovery.url_utils import clean_url, is_content_url, is_same_origin, url_depth
from urlscout.render.base import FetchError, PageRenderer

logger = logging.getLogger(__name__)


class FrontierCrawler:
    """Crawls a site breadth-first from its root, one page at a time."""

    def __init__(self, renderer: PageRenderer, config: DiscoveryConfig):
        """Initialize frontier crawler.

        Args:
            renderer: Fetches pages and extracts their anchors.
            config: Depth, timeout and page-timeout settings.
        """
        self.renderer = renderer
        self.config = config

    async def crawl(
        self,
        context: DiscoveryContext,
        origin: str,
        budget: int,
    ) -> AsyncIterator[DiscoveredUrl]:
        """Yield same-origin content URLs in BFS order.

        URLs already in ``context.visited`` (e.g. from sitemaps) are never
        yielded. Sets ``context.stop_reason`` before returning.

        Args:
            context: State of the current run.
            origin: Normalized origin to crawl.
            budget: Maximum number of URLs to yield.

        Yields:
            DiscoveredUrl for each newly found page.
        """
        root = clean_url(urljoin(origin, "/"))
        if context.is_visited(root):
            # Already emitted from a sitemap; its links still seed the crawl
            if not await self._expand(context, origin, root):
                return
        else:
            context.enqueue(root)

        emitted = 0

        while context.queue:
            reason = context.interruption()
            if reason is not None:
                logger.info("Frontier crawl stopped: %s", reason.value)
                context.stop_reason = reason
                return

            if emitted >= budget:
                context.stop_reason = StopReason.MAX_URLS
                return

            url = context.pop()
            if context.is_visited(url):
                continue
            # Marked before fetching so a URL is processed at most once
            context.mark_visited(url)

            depth = url_depth(url)
            if depth > self.config.max_depth:
                logger.debug("Skipping %s: depth %d exceeds %d", url, depth, self.config.max_depth)
                continue

            yield DiscoveredUrl.create(url, depth=depth, source=UrlSource.FRONTIER)
            emitted += 1

            if emitted >= budget:
                context.stop_reason = StopReason.MAX_URLS
                return

            if not await self._expand(context, origin, url):
                return

        context.stop_reason = StopReason.EXHAUSTED

    async def _expand(self, context: DiscoveryContext, origin: str, url: str) -> bool:
        """Fetch *url* and queue its links.

        Returns:
            False if the run was interrupted while fetching, True otherwise.
        """
        try:
            page = await context.guard(
                self.renderer.fetch(url, timeout=self.config.page_timeout, wait_until="domcontentloaded")
            )
        except FetchError as e:
            logger.warning("Failed to crawl %s: %s", url, e)
            return True
        except DiscoveryInterrupted as e:
            logger.info("Frontier crawl stopped while fetching %s: %s", url, e.reason.value)
            context.stop_reason = e.reason
            return False

        self._enqueue_links(context, origin, page.final_url or url, page.anchor_hrefs)
        return True

    def _enqueue_links(
        self,
        context: DiscoveryContext,
        origin: str,
        page_url: str,
        hrefs: list[str],
    ) -> None:
        """Queue the crawlable links found on a page."""
        added = 0
        for href in hrefs:
            try:
                link = clean_url(urljoin(page_url, href))
            except ValueError:
                logger.debug("Ignoring malformed link %r on %s", href, page_url)
                continue

            if not is_same_origin(link, origin):
                continue
            if context.is_visited(link) or context.is_queued(link):
                continue
            if not is_content_url(link):
                logger.debug("Ignoring non-content link %s", link)
                continue

            context.enqueue(link)
            added += 1

        logger.debug("Queued %d new links from %s", added, page_url)
