"""Tests for per-run discovery state."""

import asyncio

import pytest

from urlscout.config import DiscoveryConfig
from urlscout.discovery.context import DiscoveryContext
from urlscout.discovery.errors import DiscoveryInterrupted
from urlscout.discovery.models import StopReason


class TestVisitedAndQueue:
    """Tests for the visited set and frontier queue."""

    def test_visited_uses_normalized_urls(self):
        context = DiscoveryContext(DiscoveryConfig())
        context.mark_visited("https://Example.com/about/")

        assert context.is_visited("https://example.com/about")
        assert context.is_visited("https://example.com:443/about#team")
        assert not context.is_visited("https://example.com/contact")

    def test_queue_is_fifo(self):
        context = DiscoveryContext(DiscoveryConfig())
        context.enqueue("https://example.com/a")
        context.enqueue("https://example.com/b")

        assert context.is_queued("https://example.com/a/")
        assert context.pop() == "https://example.com/a"
        assert not context.is_queued("https://example.com/a")
        assert context.pop() == "https://example.com/b"

    def test_remaining_budget(self):
        context = DiscoveryContext(DiscoveryConfig(max_urls=3))
        context.emitted = 2
        assert context.remaining_budget == 1
        context.emitted = 5
        assert context.remaining_budget == 0

    def test_runs_do_not_share_state(self):
        config = DiscoveryConfig()
        first = DiscoveryContext(config)
        second = DiscoveryContext(config)

        first.mark_visited("https://example.com/")
        assert not second.is_visited("https://example.com/")


class TestInterruption:
    """Tests for cancellation and the run deadline."""

    def test_no_interruption_initially(self):
        assert DiscoveryContext(DiscoveryConfig()).interruption() is None

    def test_cancel(self):
        context = DiscoveryContext(DiscoveryConfig())
        context.cancel()

        assert context.cancelled
        assert context.interruption() == StopReason.CANCELLED

    @pytest.mark.asyncio
    async def test_guard_returns_result(self):
        context = DiscoveryContext(DiscoveryConfig())

        async def work():
            return 42

        assert await context.guard(work()) == 42

    @pytest.mark.asyncio
    async def test_guard_propagates_errors(self):
        context = DiscoveryContext(DiscoveryConfig())

        async def work():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await context.guard(work())

    @pytest.mark.asyncio
    async def test_guard_stops_at_deadline(self):
        context = DiscoveryContext(DiscoveryConfig(timeout=0.1))

        with pytest.raises(DiscoveryInterrupted) as exc_info:
            await context.guard(asyncio.sleep(5))

        assert exc_info.value.reason == StopReason.TIMEOUT
        assert context.elapsed < 2

    @pytest.mark.asyncio
    async def test_guard_stops_on_cancel(self):
        context = DiscoveryContext(DiscoveryConfig())
        asyncio.get_running_loop().call_later(0.05, context.cancel)

        with pytest.raises(DiscoveryInterrupted) as exc_info:
            await context.guard(asyncio.sleep(5))

        assert exc_info.value.reason == StopReason.CANCELLED

    @pytest.mark.asyncio
    async def test_untimed_guard_ignores_deadline(self):
        context = DiscoveryContext(DiscoveryConfig(timeout=0.05))
        await asyncio.sleep(0.1)

        assert context.time_exhausted()
        assert await context.guard(asyncio.sleep(0, result="done"), timed=False) == "done"

    @pytest.mark.asyncio
    async def test_guard_refuses_to_start_after_cancel(self):
        context = DiscoveryContext(DiscoveryConfig())
        context.cancel()

        with pytest.raises(DiscoveryInterrupted):
            await context.guard(asyncio.sleep(0))
