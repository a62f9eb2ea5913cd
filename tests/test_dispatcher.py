# File: tests/test_dispatcher.py
"""Dispatcher: concurrency cap, launch rate, progress reports and tallies."""
from __future__ import annotations

import asyncio
import time
from typing import Dict, Optional

import pytest
from aiohttp import ClientSession
from cache_warmer.warmer.dispatcher import Dispatcher
from cache_warmer.warmer.fetcher import Fetcher
from cache_warmer.warmer.models import ErrorKind, FetchOutcome


class CountingFetcher:
    """Fake fetcher that records how many fetches run at the same time."""

    def __init__(self, delay: Optional[float] = None, statuses: Optional[Dict[str, Optional[int]]] = None):
        self.delay = delay
        self.statuses = statuses or {}
        self.in_flight = 0
        self.peak = 0
        self.started: list[float] = []
        self.urls: list[str] = []

    async def fetch(self, url: str) -> FetchOutcome:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        self.started.append(time.monotonic())
        self.urls.append(url)
        try:
            if self.delay is not None:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        status = self.statuses.get(url, 200)
        if status is None:
            return FetchOutcome(url, None, 0.0, ErrorKind.TRANSPORT_ERROR, "connection refused")
        if status != 200:
            return FetchOutcome(url, status, 0.0, ErrorKind.NON_SUCCESS_STATUS)
        return FetchOutcome(url, status, 0.0)


def _urls(n: int) -> set[str]:
    return {f"https://example.com/page{i}" for i in range(n)}


@pytest.mark.asyncio()
async def test_in_flight_never_exceeds_limit():
    fetcher = CountingFetcher(delay=0.05)
    dispatcher = Dispatcher(fetcher)

    summary = await dispatcher.run(_urls(30), requests_per_second=1000, max_concurrent=3)

    assert fetcher.peak == 3
    assert dispatcher.peak_in_flight == 3
    assert dispatcher.in_flight == 0
    assert summary.total_processed == 30


@pytest.mark.asyncio()
async def test_single_slot_is_sequential():
    fetcher = CountingFetcher(delay=0.01)
    await Dispatcher(fetcher).run(_urls(10), requests_per_second=1000, max_concurrent=1)
    assert fetcher.peak == 1


@pytest.mark.asyncio()
async def test_launch_rate_follows_requests_per_second():
    fetcher = CountingFetcher()
    rps = 40.0
    start = time.monotonic()

    await Dispatcher(fetcher).run(_urls(20), requests_per_second=rps, max_concurrent=10)

    elapsed = time.monotonic() - start
    assert elapsed >= 20 / rps * 0.95
    gaps = (fetcher.started[-1] - fetcher.started[0]) / 19
    assert 1 / rps * 0.9 <= gaps <= 1 / rps * 2


@pytest.mark.asyncio()
async def test_every_url_fetched_exactly_once():
    fetcher = CountingFetcher()
    urls = _urls(57)

    await Dispatcher(fetcher).run(urls, requests_per_second=1000, max_concurrent=5)

    assert sorted(fetcher.urls) == sorted(urls)
    assert fetcher.urls == sorted(urls)


@pytest.mark.asyncio()
async def test_failures_are_counted_not_raised():
    urls = _urls(6)
    statuses = {
        "https://example.com/page0": 500,
        "https://example.com/page1": None,
        "https://example.com/page2": 404,
    }
    summary = await Dispatcher(CountingFetcher(statuses=statuses)).run(
        urls, requests_per_second=1000, max_concurrent=2
    )

    assert summary.total_resolved == 6
    assert summary.total_processed == 6
    assert summary.success_count == 3
    assert summary.failed_count == 3


@pytest.mark.asyncio()
async def test_outcomes_are_logged_as_they_complete(caplog_info):
    statuses = {"https://example.com/page0": 503, "https://example.com/page1": None}
    await Dispatcher(CountingFetcher(statuses=statuses)).run(
        _urls(3), requests_per_second=1000, max_concurrent=2
    )

    outcome_loggers = {
        r.name for r in caplog_info.records if r.getMessage().startswith(("SUCCESS", "FAILED"))
    }
    assert outcome_loggers == {"CacheWarmer.dispatcher"}
    messages = [r.getMessage() for r in caplog_info.records]
    assert any(m.startswith("SUCCESS: https://example.com/page2") for m in messages)
    assert any("FAILED: https://example.com/page0 (Status: 503" in m for m in messages)
    assert any("FAILED: https://example.com/page1 (error: connection refused)" in m for m in messages)
    # per-URL lines come before the final summary
    assert messages.index("Cache warming completed. Summary:") > max(
        i for i, m in enumerate(messages) if m.startswith(("SUCCESS", "FAILED"))
    )


@pytest.mark.asyncio()
async def test_250_urls_progress_and_summary(monkeypatch, caplog_info):
    real_sleep = asyncio.sleep
    delays: list[float] = []

    async def fake_sleep(delay, result=None):
        delays.append(delay)
        await real_sleep(0)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)

    fetcher = CountingFetcher()
    summary = await Dispatcher(fetcher).run(_urls(250), requests_per_second=4, max_concurrent=8)

    assert summary.total_resolved == 250
    assert summary.total_processed == 250
    assert summary.success_count == 250
    assert summary.failed_count == 0
    assert delays == [0.25] * 250
    assert fetcher.peak <= 8

    progress = [r.getMessage() for r in caplog_info.records if r.getMessage().startswith("Progress:")]
    assert progress == ["Progress: 100/250 URLs processed", "Progress: 200/250 URLs processed"]


@pytest.mark.asyncio()
async def test_empty_url_set():
    summary = await Dispatcher(CountingFetcher()).run(set(), requests_per_second=10, max_concurrent=2)
    assert summary.total_processed == 0
    assert summary.total_resolved == 0


@pytest.mark.asyncio()
@pytest.mark.parametrize("rps,limit", [(0, 1), (-1.0, 1), (1.0, 0)])
async def test_invalid_limits(rps, limit):
    with pytest.raises(ValueError):
        await Dispatcher(CountingFetcher()).run(_urls(1), requests_per_second=rps, max_concurrent=limit)


@pytest.mark.asyncio()
async def test_cancel_stops_in_flight_fetches():
    fetcher = CountingFetcher(delay=5.0)
    task = asyncio.create_task(
        Dispatcher(fetcher).run(_urls(10), requests_per_second=1000, max_concurrent=2)
    )
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert fetcher.in_flight == 0


class ExplodingFetcher(CountingFetcher):
    """Fake fetcher that raises an unexpected error for selected URLs."""

    def __init__(self, broken: set[str]):
        super().__init__()
        self.broken = broken

    async def fetch(self, url: str) -> FetchOutcome:
        if url in self.broken:
            raise RuntimeError("boom")
        return await super().fetch(url)


@pytest.mark.asyncio()
async def test_unexpected_fetch_error_is_recorded_as_failure(caplog_info):
    urls = _urls(4)
    broken = {"https://example.com/page1"}
    dispatcher = Dispatcher(ExplodingFetcher(broken))

    summary = await dispatcher.run(urls, requests_per_second=1000, max_concurrent=2)

    assert summary.total_processed == 4
    assert summary.failed_count == 1
    assert dispatcher.in_flight == 0
    messages = [r.getMessage() for r in caplog_info.records]
    assert "FAILED: https://example.com/page1 (error: boom)" in messages


@pytest.mark.asyncio()
async def test_malformed_host_does_not_abort_run(make_config, unused_tcp_port_factory):
    dead = f"http://127.0.0.1:{unused_tcp_port_factory()}/x"
    async with ClientSession() as session:
        dispatcher = Dispatcher(Fetcher(session, make_config()))
        summary = await dispatcher.run({"http://a..b/", dead}, requests_per_second=1000, max_concurrent=2)

    assert summary.total_processed == 2
    assert summary.failed_count == 2
    assert summary.success_count == 0
