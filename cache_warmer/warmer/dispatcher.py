# cache_warmer/warmer/dispatcher.py
"""
Dispatcher: drives the Fetcher over the resolved URL set under two limits
at once, a steady-state launch rate and a maximum number of in-flight
requests.
"""
from __future__ import annotations

import asyncio
from typing import Iterable, Protocol, Set

from cache_warmer.aggregator import ResultAggregator, RunSummary
from cache_warmer.logger import get_logger
from cache_warmer.warmer.models import ErrorKind, FetchOutcome

__all__ = ("Dispatcher", "SupportsFetch")


class SupportsFetch(Protocol):
    async def fetch(self, url: str) -> FetchOutcome: ...


class Dispatcher:
    """Launches one fetch per URL, at most ``max_concurrent`` at a time,
    no faster than ``requests_per_second``."""

    def __init__(self, fetcher: SupportsFetch, progress_every: int = 100) -> None:
        if progress_every < 1:
            raise ValueError("progress_every must be >= 1")
        self.fetcher = fetcher
        self.progress_every = progress_every
        self.in_flight = 0
        self.peak_in_flight = 0
        self.logger = get_logger("dispatcher")

    async def run(
        self,
        urls: Iterable[str],
        requests_per_second: float,
        max_concurrent: int,
    ) -> RunSummary:
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")

        ordered = sorted(set(urls))
        total = len(ordered)
        delay = 1.0 / requests_per_second
        aggregator = ResultAggregator(total_resolved=total)
        semaphore = asyncio.Semaphore(max_concurrent)
        tasks: Set[asyncio.Task[None]] = set()
        self.in_flight = 0
        self.peak_in_flight = 0

        self.logger.info(
            "Starting cache warming with %g req/s (%.3fs delay), %d concurrent",
            requests_per_second, delay, max_concurrent,
        )
        self.logger.info("Processing %d URLs...", total)

        try:
            for submitted, url in enumerate(ordered, start=1):
                await semaphore.acquire()
                self.in_flight += 1
                self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
                task = asyncio.create_task(self._warm(url, semaphore, aggregator))
                tasks.add(task)
                task.add_done_callback(tasks.discard)

                await asyncio.sleep(delay)

                if submitted % self.progress_every == 0:
                    self.logger.info("Progress: %d/%d URLs processed", submitted, total)

            if tasks:
                await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            pending = list(tasks)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

        summary = aggregator.finalize()
        self.logger.info("Cache warming completed. Summary:")
        self.logger.info("Total processed: %d", summary.total_processed)
        self.logger.info("Successful: %d", summary.success_count)
        self.logger.info("Failed: %d", summary.failed_count)
        return summary

    async def _warm(
        self, url: str, semaphore: asyncio.Semaphore, aggregator: ResultAggregator
    ) -> None:
        try:
            outcome = await self.fetcher.fetch(url)
        except Exception as exc:  # noqa: BLE001
            # a single URL must never abort the run
            self.logger.exception("Unexpected error while warming %s", url)
            outcome = FetchOutcome(
                url, None, 0.0, ErrorKind.TRANSPORT_ERROR, str(exc) or type(exc).__name__
            )
        finally:
            self.in_flight -= 1
            semaphore.release()
        self._log_outcome(outcome)
        aggregator.record(outcome)

    def _log_outcome(self, outcome: FetchOutcome) -> None:
        if outcome.ok:
            self.logger.info("SUCCESS: %s (%.3fs)", outcome.url, outcome.duration)
        elif outcome.error_kind is ErrorKind.TRANSPORT_ERROR:
            self.logger.warning("FAILED: %s (error: %s)", outcome.url, outcome.error)
        else:
            self.logger.warning(
                "FAILED: %s (Status: %s, %.3fs)", outcome.url, outcome.status, outcome.duration
            )
