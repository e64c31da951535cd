"""URL discovery orchestration: robots -> sitemaps -> frontier crawl."""

import contextlib
import logging
from enum import Enum
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Optional
from urllib.parse import urljoin

import httpx

from urlscout.config import DiscoveryConfig
from urlscout.discovery.context import DiscoveryContext
from urlscout.discovery.domain import DomainNormalizer
from urlscout.discovery.errors import CrawlDisallowedError, DiscoveryError, DiscoveryInterrupted
from urlscout.discovery.frontier import FrontierCrawler
from urlscout.discovery.models import CrawlResult, DiscoveredUrl, StopReason, UrlSource
from urlscout.discovery.robots import RobotsPolicyChecker
from urlscout.discovery.sitemap import SitemapResolver
from urlscout.discovery.url_utils import is_same_origin
from urlscout.render.base import PageRenderer, RendererError
from urlscout.render.static import StaticRenderer

logger = logging.getLogger(__name__)

RendererFactory = Callable[[DiscoveryConfig, httpx.AsyncClient], AsyncContextManager[PageRenderer]]


class RunState(str, Enum):
    """Phases of a discovery run."""

    NOT_STARTED = "not_started"
    POLICY_CHECKED = "policy_checked"
    SITEMAP_PHASE = "sitemap_phase"
    FRONTIER_PHASE = "frontier_phase"
    COMPLETED = "completed"
    FAILED = "failed"


def default_renderer_factory(config: DiscoveryConfig, client: httpx.AsyncClient) -> AsyncContextManager[PageRenderer]:
    """Build the renderer named by ``config.renderer``."""
    if config.renderer == "static":
        return StaticRenderer(client=client)

    # Playwright is only imported when a browser is actually needed
    from urlscout.render.browser import BrowserRenderer

    return BrowserRenderer(user_agent=config.user_agent)


class DiscoveryRun:
    """A single discovery run, consumed as an async iterator of DiscoveredUrl.

    The run is lazy: nothing happens until iteration starts, and URLs are
    produced only as fast as the consumer pulls them. ``result`` holds the
    run summary and is final once iteration ends.
    """

    def __init__(self, pipeline: "DiscoveryPipeline", domain: str, config: DiscoveryConfig):
        self.domain = domain
        self.config = config
        self.context = DiscoveryContext(config)
        self.result = CrawlResult(domain=domain)
        self.state = RunState.NOT_STARTED
        self._pipeline = pipeline
        self._iterator: Optional[AsyncIterator[DiscoveredUrl]] = None

    def __aiter__(self) -> AsyncIterator[DiscoveredUrl]:
        if self._iterator is None:
            self._iterator = self._iterate()
        return self._iterator

    def cancel(self) -> None:
        """Ask the run to stop at its next suspension point."""
        self.context.cancel()

    async def aclose(self) -> None:
        """Cancel the run and release its HTTP client and renderer."""
        self.cancel()
        if self._iterator is not None:
            await self._iterator.aclose()
        if not self.result.finished:
            self.result.complete(StopReason.CANCELLED)
            self.state = RunState.COMPLETED

    async def _iterate(self) -> AsyncIterator[DiscoveredUrl]:
        try:
            async with contextlib.aclosing(self._pipeline._produce(self)) as produced:
                async for discovered in produced:
                    self.result.add(discovered)
                    yield discovered
        except DiscoveryError as e:
            self.state = RunState.FAILED
            self.result.fail(str(e))
            logger.error("URL discovery failed for %s: %s", self.domain, e)
            raise
        except Exception as e:
            self.state = RunState.FAILED
            self.result.fail(str(e) or type(e).__name__)
            raise
        else:
            self.state = RunState.COMPLETED
            self.result.complete(self.context.stop_reason or StopReason.EXHAUSTED)
            logger.info(
                "URL discovery completed for %s: %d URLs (%s)",
                self.domain,
                self.result.total_found,
                self.result.stop_reason.value,
            )
        finally:
            # Consumer stopped iterating early
            if not self.result.finished:
                self.state = RunState.COMPLETED
                self.result.complete(StopReason.CANCELLED)


class DiscoveryPipeline:
    """Discovers the content URLs of a domain.

    The pipeline holds configuration and collaborators only; every call to
    :meth:`run` gets its own :class:`DiscoveryContext`, so one pipeline can
    serve concurrent runs for different domains.
    """

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        renderer: Optional[PageRenderer] = None,
        client: Optional[httpx.AsyncClient] = None,
        renderer_factory: Optional[RendererFactory] = None,
    ):
        """Initialize pipeline.

        Args:
            config: Budgets and timeouts; defaults to :class:`DiscoveryConfig`.
            renderer: Ready-to-use page renderer shared by all runs. When
                omitted, ``renderer_factory`` creates one per run.
            client: Shared HTTP client. When omitted, each run opens its own.
            renderer_factory: Builds a per-run renderer context manager.
        """
        self.config = config or DiscoveryConfig()
        self._renderer = renderer
        self._client = client
        self._renderer_factory = renderer_factory or default_renderer_factory

    def run(self, domain: str, **overrides: Any) -> DiscoveryRun:
        """Create a discovery run for *domain*.

        Args:
            domain: Domain or URL to discover.
            **overrides: Per-call :class:`DiscoveryConfig` values.

        Returns:
            A lazy, single-use async iterator over discovered URLs.
        """
        return DiscoveryRun(self, domain, self.config.with_overrides(**overrides))

    async def discover(self, domain: str, **overrides: Any) -> AsyncIterator[DiscoveredUrl]:
        """Yield discovered URLs for *domain*.

        Raises:
            InvalidDomainError: If the domain cannot be parsed.
            CrawlDisallowedError: If robots.txt forbids crawling.
        """
        async for discovered in self.run(domain, **overrides):
            yield discovered

    async def collect(self, domain: str, **overrides: Any) -> CrawlResult:
        """Run discovery to the end and return the summary.

        Fatal errors are reported through ``CrawlResult.status`` and
        ``CrawlResult.error`` instead of being raised.
        """
        run = self.run(domain, **overrides)
        try:
            async for _ in run:
                pass
        except DiscoveryError:
            # Already recorded on run.result
            pass
        return run.result

    def _new_client(self, config: DiscoveryConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            follow_redirects=True,
            timeout=config.sitemap_timeout,
        )

    async def _produce(self, run: DiscoveryRun) -> AsyncIterator[DiscoveredUrl]:
        """Run the discovery phases, yielding URLs as they clear all checks."""
        config = run.config
        context = run.context

        async with contextlib.AsyncExitStack() as stack:
            client = self._client or await stack.enter_async_context(self._new_client(config))

            origin = await DomainNormalizer(client, config.probe_timeout).resolve(run.domain)
            run.result.origin = origin
            logger.info("Starting URL discovery for %s", origin)

            robots = RobotsPolicyChecker(client, config.agent_token, config.robots_timeout)
            rules = await robots.fetch(origin)
            if not robots.allows(rules, urljoin(origin, "/")):
                logger.warning("Crawling disallowed by robots.txt for %s", origin)
                raise CrawlDisallowedError(origin)
            run.state = RunState.POLICY_CHECKED

            # Phase 1: sitemaps, bounded by their candidate list rather than the clock
            run.state = RunState.SITEMAP_PHASE
            resolver = SitemapResolver(
                client,
                max_urls=config.max_urls,
                timeout=config.sitemap_timeout,
                max_depth=config.max_sitemap_depth,
            )
            try:
                sitemap_urls = await context.guard(
                    resolver.resolve(origin, rules.sitemaps if rules else ()),
                    timed=False,
                )
            except DiscoveryInterrupted as e:
                context.stop_reason = e.reason
                return

            from_sitemap = 0
            for url in sitemap_urls:
                if context.remaining_budget == 0:
                    break
                if not is_same_origin(url, origin):
                    logger.debug("Ignoring sitemap URL outside %s: %s", origin, url)
                    continue
                if context.is_visited(url):
                    continue

                context.mark_visited(url)
                context.emitted += 1
                from_sitemap += 1
                yield DiscoveredUrl.create(url, depth=0, source=UrlSource.SITEMAP)

                if context.cancelled:
                    context.stop_reason = StopReason.CANCELLED
                    return

            logger.info("Sitemap yielded %d URLs for %s", from_sitemap, origin)

            if context.remaining_budget == 0:
                context.stop_reason = StopReason.MAX_URLS
                return
            reason = context.interruption()
            if reason is not None:
                context.stop_reason = reason
                return

            # Phase 2: top up with a breadth-first crawl from the root
            run.state = RunState.FRONTIER_PHASE
            renderer = self._renderer
            if renderer is None:
                try:
                    renderer = await stack.enter_async_context(self._renderer_factory(config, client))
                except RendererError as e:
                    logger.error("Page renderer unavailable, skipping link crawl: %s", e)
                    context.stop_reason = StopReason.RENDERER_FAILED
                    return

            logger.info("Crawling %s for up to %d more URLs", origin, context.remaining_budget)
            frontier = FrontierCrawler(renderer, config)
            async with contextlib.aclosing(frontier.crawl(context, origin, context.remaining_budget)) as urls:
                async for discovered in urls:
                    context.emitted += 1
                    yield discovered
