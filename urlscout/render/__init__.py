"""Render module - fetch pages and read their links."""

from urlscout.render.base import FetchError, PageRenderer, RenderedPage, RendererError
from urlscout.render.static import StaticRenderer

__all__ = [
    "FetchError",
    "PageRenderer",
    "RenderedPage",
    "RendererError",
    "StaticRenderer",
]
