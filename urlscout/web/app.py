"""FastAPI application exposing URL discovery."""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Optional

from fastapi import FastAPI

from urlscout import __version__
from urlscout.config import get_discovery_config, load_config
from urlscout.discovery.pipeline import DiscoveryPipeline
from urlscout.web.registry import CrawlRegistry


def create_app(
    config: Optional[dict[str, Any]] = None,
    pipeline: Optional[DiscoveryPipeline] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Full configuration; loaded from the default locations if omitted.
        pipeline: Discovery pipeline to serve; built from ``config`` if omitted.
    """
    config = config or load_config()
    web_settings = config.get("web", {})
    pipeline = pipeline or DiscoveryPipeline(get_discovery_config(config))
    registry = CrawlRegistry(
        pipeline,
        ttl=timedelta(hours=web_settings.get("cache_ttl_hours", 24)),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await registry.shutdown()

    app = FastAPI(
        title="URLScout",
        description="URL discovery for structured-data generation",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.web_settings = {
        "initial_batch": web_settings.get("initial_batch", 20),
        "initial_wait": web_settings.get("initial_wait", 10.0),
    }

    from urlscout.web.routes import crawler

    app.include_router(crawler.router, prefix="/api/crawler", tags=["Crawler"])

    @app.get("/api/status")
    async def system_status():
        """Get system status."""
        return {
            "version": __version__,
            "active_crawls": registry.active_count,
            "total_crawls": len(registry),
        }

    return app


def run_server(host: str = "127.0.0.1", port: int = 8888, config: Optional[dict[str, Any]] = None) -> None:
    """Run the web server."""
    import uvicorn

    app = create_app(config)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
