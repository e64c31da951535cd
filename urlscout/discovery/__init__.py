"""Discovery module - find the content URLs of a site."""

from urlscout.discovery.errors import CrawlDisallowedError, DiscoveryError, InvalidDomainError
from urlscout.discovery.models import CrawlResult, CrawlStatus, DiscoveredUrl, StopReason, UrlSource
from urlscout.discovery.pipeline import DiscoveryPipeline, DiscoveryRun, RunState

__all__ = [
    "CrawlDisallowedError",
    "CrawlResult",
    "CrawlStatus",
    "DiscoveredUrl",
    "DiscoveryError",
    "DiscoveryPipeline",
    "DiscoveryRun",
    "InvalidDomainError",
    "RunState",
    "StopReason",
    "UrlSource",
]
