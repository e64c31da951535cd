"""In-memory registry of background discovery runs."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from urlscout.discovery.errors import DiscoveryError
from urlscout.discovery.models import CrawlResult, CrawlStatus
from urlscout.discovery.pipeline import DiscoveryPipeline, DiscoveryRun

logger = logging.getLogger(__name__)


@dataclass
class CrawlJob:
    """A discovery run driven in the background."""

    crawl_id: str
    run: DiscoveryRun
    created_at: datetime
    task: Optional[asyncio.Task] = None
    exception: Optional[DiscoveryError] = None
    changed: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def result(self) -> CrawlResult:
        return self.run.result

    def snapshot(self) -> dict[str, Any]:
        """Current state in the API's response shape."""
        result = self.result
        return {
            "crawlId": self.crawl_id,
            "domain": result.domain,
            "origin": result.origin,
            "urls": [u.to_dict() for u in result.urls],
            "totalFound": result.total_found,
            "status": result.status.value,
            "error": result.error,
            "stopReason": result.stop_reason.value if result.stop_reason else None,
            "hasMore": not result.finished,
        }


class CrawlRegistry:
    """Starts discovery runs as asyncio tasks and keeps their results.

    Results live in memory for ``ttl`` and are pruned whenever a new crawl
    starts.
    """

    def __init__(self, pipeline: DiscoveryPipeline, ttl: timedelta = timedelta(hours=24)):
        """Initialize registry.

        Args:
            pipeline: Shared, stateless discovery pipeline.
            ttl: How long finished crawls stay available.
        """
        self.pipeline = pipeline
        self.ttl = ttl
        self._jobs: dict[str, CrawlJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def active_count(self) -> int:
        return sum(1 for job in self._jobs.values() if not job.result.finished)

    def get(self, crawl_id: str) -> Optional[CrawlJob]:
        return self._jobs.get(crawl_id)

    def start(self, domain: str) -> CrawlJob:
        """Start discovering *domain* in the background.

        Must be called from a running event loop.
        """
        self.prune()

        crawl_id = f"crawl_{uuid.uuid4().hex[:12]}"
        job = CrawlJob(
            crawl_id=crawl_id,
            run=self.pipeline.run(domain),
            created_at=datetime.now(timezone.utc),
        )
        job.task = asyncio.create_task(self._drive(job), name=crawl_id)
        self._jobs[crawl_id] = job

        logger.info("Started crawl %s for %s", crawl_id, domain)
        return job

    async def _drive(self, job: CrawlJob) -> None:
        try:
            async for _ in job.run:
                job.changed.set()
        except DiscoveryError as e:
            # Status and message are already on job.result
            job.exception = e
        except Exception:
            logger.exception("Crawl %s crashed", job.crawl_id)
        finally:
            job.changed.set()

        logger.info(
            "Crawl %s %s with %d URLs",
            job.crawl_id,
            job.result.status.value,
            job.result.total_found,
        )

    async def wait_for_change(self, job: CrawlJob, timeout: float) -> None:
        """Wait until the job finds a URL or finishes, at most *timeout* seconds."""
        if job.result.finished:
            return
        job.changed.clear()
        try:
            await asyncio.wait_for(job.changed.wait(), timeout)
        except asyncio.TimeoutError:
            pass

    async def wait_for_urls(self, job: CrawlJob, count: int, timeout: float) -> None:
        """Wait until *count* URLs are found, the job finishes, or *timeout* passes."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while job.result.total_found < count and not job.result.finished:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await self.wait_for_change(job, remaining)

    def find_cached(self, domain: str) -> Optional[CrawlJob]:
        """Return the newest completed crawl of *domain* that is still fresh."""
        key = domain.strip().lower()
        cutoff = datetime.now(timezone.utc) - self.ttl

        matches = [
            job
            for job in self._jobs.values()
            if job.run.domain.strip().lower() == key
            and job.result.status == CrawlStatus.COMPLETED
            and job.created_at > cutoff
        ]
        return max(matches, key=lambda job: job.created_at, default=None)

    def cancel(self, crawl_id: str) -> bool:
        """Ask a running crawl to stop. Returns False for unknown crawls."""
        job = self._jobs.get(crawl_id)
        if job is None:
            return False
        job.run.cancel()
        return True

    def prune(self) -> int:
        """Drop finished crawls older than the TTL. Returns how many were dropped."""
        cutoff = datetime.now(timezone.utc) - self.ttl
        expired = [
            crawl_id
            for crawl_id, job in self._jobs.items()
            if job.created_at < cutoff and job.result.finished
        ]
        for crawl_id in expired:
            del self._jobs[crawl_id]
            logger.info("Cleaned up old crawl: %s", crawl_id)
        return len(expired)

    async def shutdown(self) -> None:
        """Cancel every running crawl and wait for the tasks to finish."""
        tasks = [job.task for job in self._jobs.values() if job.task and not job.task.done()]
        for job in self._jobs.values():
            job.run.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
