"""Exceptions raised by the discovery pipeline."""

from urlscout.discovery.models import StopReason


class DiscoveryError(Exception):
    """Base class for errors that abort a discovery run."""

    pass


class InvalidDomainError(DiscoveryError):
    """Raised when the requested domain cannot be parsed as a URL."""

    def __init__(self, domain: str, message: str = "Invalid domain format"):
        super().__init__(message)
        self.domain = domain


class CrawlDisallowedError(DiscoveryError):
    """Raised when robots.txt forbids crawling the site root."""

    def __init__(self, origin: str, message: str = "Domain blocks automated crawling via robots.txt"):
        super().__init__(message)
        self.origin = origin


class DiscoveryInterrupted(Exception):
    """Raised inside a run when the time budget runs out or the run is cancelled."""

    def __init__(self, reason: StopReason):
        super().__init__(reason.value)
        self.reason = reason
