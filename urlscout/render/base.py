"""Page renderer contract used by the frontier crawler."""

from dataclasses import dataclass, field
from typing import Protocol


class RendererError(Exception):
    """Raised when a renderer cannot be started."""

    pass


class FetchError(RendererError):
    """Raised when a page cannot be fetched or its links cannot be read."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


@dataclass
class RenderedPage:
    """What the crawler needs from a fetched page."""

    final_url: str
    anchor_hrefs: list[str] = field(default_factory=list)


class PageRenderer(Protocol):
    """Fetches a page and returns the anchors present after DOM-ready."""

    async def fetch(
        self,
        url: str,
        timeout: float = 10.0,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        ...
