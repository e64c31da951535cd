"""Web routes module."""

from urlscout.web.routes import crawler

__all__ = ["crawler"]
