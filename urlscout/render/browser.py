"""Headless browser page rendering using Playwright."""

import contextlib
import logging
from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from urlscout.config import DEFAULT_USER_AGENT
from urlscout.render.base import FetchError, RenderedPage, RendererError

logger = logging.getLogger(__name__)

_EXTRACT_ANCHORS = "anchors => anchors.map(a => a.href).filter(Boolean)"


class BrowserRenderer:
    """Fetch pages in headless Chromium and read their anchors.

    Pages are opened one at a time from a single browser context, so one
    renderer never holds more than one page.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        width: int = 1280,
        height: int = 800,
    ):
        """Initialize browser renderer.

        Args:
            user_agent: User-Agent header sent with page requests.
            width: Viewport width.
            height: Viewport height.
        """
        self.user_agent = user_agent
        self.width = width
        self.height = height
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "BrowserRenderer":
        """Async context manager entry."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=True,
                args=[
                    "--no-sandbox",
                    "--disable-dev-shm-usage",
                    "--disable-gpu",
                ],
            )
            self._context = await self._browser.new_context(
                viewport={"width": self.width, "height": self.height},
                user_agent=self.user_agent,
            )
        except PlaywrightError as e:
            await self.close()
            raise RendererError(
                f"Could not start Chromium ({e}). Run: playwright install chromium"
            ) from e
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        if self._context:
            await self._context.close()
            self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def fetch(
        self,
        url: str,
        timeout: float = 10.0,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        """Navigate to *url* and collect the ``href`` of every anchor.

        Args:
            url: Page URL.
            timeout: Navigation timeout in seconds.
            wait_until: Playwright load state to wait for.

        Returns:
            The page's final URL and absolute anchor hrefs.

        Raises:
            FetchError: If navigation or extraction fails.
        """
        if not self._context:
            raise RuntimeError("Browser not initialized. Use 'async with' context.")

        page = None
        try:
            page = await self._context.new_page()
            await page.goto(url, wait_until=wait_until, timeout=timeout * 1000)
            hrefs = await page.eval_on_selector_all("a[href]", _EXTRACT_ANCHORS)
            return RenderedPage(final_url=page.url, anchor_hrefs=list(hrefs))
        except PlaywrightError as e:
            raise FetchError(url, e.message) from e
        finally:
            if page is not None:
                with contextlib.suppress(PlaywrightError):
                    await page.close()
