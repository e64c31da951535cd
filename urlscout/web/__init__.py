"""Web module - HTTP API for URL discovery."""

from urlscout.web.app import create_app, run_server

__all__ = ["create_app", "run_server"]
