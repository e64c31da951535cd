"""Data types produced by URL discovery."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlparse


class CrawlStatus(str, Enum):
    """Lifecycle status reported to consumers."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class StopReason(str, Enum):
    """Why a completed run stopped emitting URLs."""

    EXHAUSTED = "exhausted"
    MAX_URLS = "max_urls"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    RENDERER_FAILED = "renderer_failed"


class UrlSource(str, Enum):
    """Which discovery strategy found a URL."""

    SITEMAP = "sitemap"
    FRONTIER = "frontier"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DiscoveredUrl:
    """One discovered page reference."""

    url: str
    path: str
    depth: int
    source: UrlSource
    discovered_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(cls, url: str, depth: int, source: UrlSource) -> "DiscoveredUrl":
        """Build a record for *url*, deriving its path."""
        return cls(url=url, path=urlparse(url).path or "/", depth=depth, source=source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "path": self.path,
            "depth": self.depth,
            "source": self.source.value,
            "discoveredAt": self.discovered_at.isoformat(),
        }


@dataclass
class CrawlResult:
    """Run-level summary of a discovery run."""

    domain: str
    urls: list[DiscoveredUrl] = field(default_factory=list)
    total_found: int = 0
    status: CrawlStatus = CrawlStatus.IN_PROGRESS
    error: Optional[str] = None
    origin: Optional[str] = None
    stop_reason: Optional[StopReason] = None
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    @property
    def partial(self) -> bool:
        """True when the run completed but stopped before running out of URLs."""
        return self.status == CrawlStatus.COMPLETED and self.stop_reason not in (
            None,
            StopReason.EXHAUSTED,
        )

    @property
    def finished(self) -> bool:
        return self.status != CrawlStatus.IN_PROGRESS

    def add(self, discovered: DiscoveredUrl) -> None:
        self.urls.append(discovered)
        self.total_found += 1

    def complete(self, stop_reason: StopReason) -> None:
        self.status = CrawlStatus.COMPLETED
        self.stop_reason = stop_reason
        self.finished_at = _utcnow()

    def fail(self, error: str) -> None:
        self.status = CrawlStatus.FAILED
        self.error = error
        self.finished_at = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output, using the API's camelCase keys."""
        return {
            "domain": self.domain,
            "origin": self.origin,
            "urls": [u.to_dict() for u in self.urls],
            "totalFound": self.total_found,
            "status": self.status.value,
            "error": self.error,
            "stopReason": self.stop_reason.value if self.stop_reason else None,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
        }
