# File: cache_warmer/engine.py
"""cache_warmer.engine: Orchestration layer: один раз разрешить sitemap, затем прогреть все URL."""

from __future__ import annotations

import time
from typing import FrozenSet, Optional

from aiohttp import ClientSession, TCPConnector

from cache_warmer.aggregator import RunSummary
from cache_warmer.config import WarmerConfig
from cache_warmer.logger import logger
from cache_warmer.warmer.dispatcher import Dispatcher
from cache_warmer.warmer.fetcher import Fetcher
from cache_warmer.warmer.resolver import SitemapResolver

__all__ = ["CacheWarmer", "start_warm", "resolve_urls"]


class CacheWarmer:
    """Владеет HTTP-сессией на время запуска и связывает компоненты между собой."""

    def __init__(self, config: WarmerConfig) -> None:
        self.config = config
        self.session: Optional[ClientSession] = None

    async def __aenter__(self) -> CacheWarmer:
        self.session = ClientSession(
            connector=TCPConnector(limit=self.config.max_concurrent),
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    def _require_session(self) -> ClientSession:
        if not self.session:
            raise RuntimeError("Session not initialized")
        return self.session

    async def resolve(self) -> FrozenSet[str]:
        """Возвращает множество URL страниц из sitemap (DownloadFailure / EmptyResultFailure)."""
        resolver = SitemapResolver(self._require_session(), self.config)
        return await resolver.resolve(str(self.config.sitemap_url))

    async def warm(self) -> RunSummary:
        """Полный запуск: разрешение sitemap и прогрев всех найденных страниц."""
        logger.info("Starting cache warming process for %s", self.config.sitemap_url)
        start = time.monotonic()

        urls = await self.resolve()
        dispatcher = Dispatcher(
            Fetcher(self._require_session(), self.config),
            progress_every=self.config.progress_every,
        )
        summary = await dispatcher.run(
            urls, self.config.requests_per_second, self.config.max_concurrent
        )

        logger.info("Process completed in %.2f s", time.monotonic() - start)
        return summary


async def start_warm(cfg: WarmerConfig) -> RunSummary:
    """Запускает прогрев в контексте CacheWarmer и возвращает RunSummary."""
    async with CacheWarmer(cfg) as warmer:
        return await warmer.warm()


async def resolve_urls(cfg: WarmerConfig) -> FrozenSet[str]:
    """Только разрешает sitemap, без запросов к страницам."""
    async with CacheWarmer(cfg) as warmer:
        return await warmer.resolve()
