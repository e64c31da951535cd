"""Crawler API routes - start discovery, poll and stream results."""

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from urlscout.discovery.errors import CrawlDisallowedError, InvalidDomainError
from urlscout.web.registry import CrawlRegistry

router = APIRouter()


class DiscoverRequest(BaseModel):
    domain: str = ""


def _registry(request: Request) -> CrawlRegistry:
    return request.app.state.registry


def _not_found() -> JSONResponse:
    return JSONResponse({"success": False, "error": "Crawl not found"}, status_code=404)


@router.post("/discover")
async def discover_urls(body: DiscoverRequest, request: Request):
    """Start URL discovery and return the first batch of URLs."""
    domain = body.domain.strip()
    if not domain:
        return JSONResponse({"success": False, "error": "Domain is required"}, status_code=400)

    registry = _registry(request)
    settings = request.app.state.web_settings

    job = registry.start(domain)
    await registry.wait_for_urls(job, settings["initial_batch"], settings["initial_wait"])

    if isinstance(job.exception, InvalidDomainError):
        return JSONResponse(
            {"success": False, "error": str(job.exception), "crawlId": job.crawl_id},
            status_code=400,
        )
    if isinstance(job.exception, CrawlDisallowedError):
        return JSONResponse(
            {"success": False, "error": str(job.exception), "crawlId": job.crawl_id},
            status_code=403,
        )

    return {"success": True, "data": job.snapshot()}


@router.get("/results/{crawl_id}")
async def get_crawl_results(crawl_id: str, request: Request):
    """Get crawl status and results."""
    job = _registry(request).get(crawl_id)
    if job is None:
        return _not_found()
    return {"success": True, "data": job.snapshot()}


@router.get("/results/{crawl_id}/stream")
async def stream_crawl_results(crawl_id: str, request: Request):
    """SSE stream of newly discovered URLs until the crawl finishes."""
    registry = _registry(request)
    job = registry.get(crawl_id)
    if job is None:
        return _not_found()

    async def event_generator():
        sent = 0
        while not job.result.finished:
            urls = job.result.urls
            if len(urls) > sent:
                yield {
                    "event": "progress",
                    "data": json.dumps(
                        {
                            "urls": [u.to_dict() for u in urls[sent:]],
                            "totalFound": job.result.total_found,
                        }
                    ),
                }
                sent = len(urls)
            await registry.wait_for_change(job, 1.0)

        yield {"event": "complete", "data": json.dumps(job.snapshot())}

    return EventSourceResponse(event_generator())


@router.get("/cached/{domain}")
async def get_cached_crawl(domain: str, request: Request):
    """Return a recent completed crawl of the domain, if any."""
    job = _registry(request).find_cached(domain)
    if job is None:
        return {"success": True, "data": None}
    return {"success": True, "data": {**job.snapshot(), "cached": True}}


@router.delete("/{crawl_id}")
async def cancel_crawl(crawl_id: str, request: Request):
    """Stop a running crawl; URLs found so far are kept."""
    if not _registry(request).cancel(crawl_id):
        return _not_found()
    return {"success": True, "data": {"crawlId": crawl_id, "cancelled": True}}
