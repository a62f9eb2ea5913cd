# cache_warmer/warmer/resolver.py
"""
Sitemap resolver: downloads a sitemap (with retries), follows sitemap
indexes recursively and collects a deduplicated set of page URLs.
"""
from __future__ import annotations

import asyncio
from typing import FrozenSet, List, Optional, Set

from aiohttp import ClientError, ClientSession, ClientTimeout

from cache_warmer.config import WarmerConfig
from cache_warmer.errors import ChildSitemapFailure, DownloadFailure, EmptyResultFailure
from cache_warmer.logger import get_logger
from cache_warmer.parser.sitemap_parser import parse_sitemap
from cache_warmer.warmer.models import SitemapDocument

__all__ = ("SitemapResolver",)


class SitemapResolver:
    """Resolves a root sitemap URL into the set of page URLs to warm.

    The root sitemap is mandatory: if it cannot be downloaded the whole run
    fails with DownloadFailure. Children of an index are optional: an
    unreachable child is logged, remembered in ``failed_sitemaps`` and skipped.
    """

    def __init__(self, session: ClientSession, config: WarmerConfig) -> None:
        self.session = session
        self.config = config
        self.failed_sitemaps: List[str] = []
        self.logger = get_logger("resolver")
        self._visited: Set[str] = set()
        self._timeout = ClientTimeout(total=config.sitemap_timeout)

    async def resolve(self, root_url: Optional[str] = None) -> FrozenSet[str]:
        root = str(root_url or self.config.sitemap_url)
        self._visited.clear()
        self.failed_sitemaps.clear()

        self.logger.info("Downloading main sitemap from %s", root)
        try:
            document = await self._load(root)
        except ValueError as exc:
            self.logger.error("Main sitemap is not a valid XML document: %s", exc)
            raise EmptyResultFailure(root) from exc

        urls: Set[str] = set()
        await self._collect(root, document, urls)

        if self.failed_sitemaps:
            self.logger.warning("Skipped %d unreachable sitemap(s)", len(self.failed_sitemaps))
        if not urls:
            raise EmptyResultFailure(root)
        self.logger.info("Found %d unique URLs in total", len(urls))
        return frozenset(urls)

    async def _collect(self, url: str, document: SitemapDocument, urls: Set[str]) -> None:
        if not document.is_index:
            before = len(urls)
            urls.update(document.locations)
            self.logger.info(
                "Found %d URLs in this sitemap (%d new)", len(document.locations), len(urls) - before
            )
            return

        self.logger.info(
            "Found sitemap index %s, processing %d sitemaps...", url, len(document.locations)
        )
        processed = 0
        for child in dict.fromkeys(document.locations):
            if child in self._visited:
                self.logger.debug("Sitemap already processed, skipping: %s", child)
                continue
            if processed:
                # brief pause between sitemaps
                await asyncio.sleep(self.config.sitemap_pause)
            processed += 1
            try:
                child_document = await self._load(child)
            except (DownloadFailure, ValueError) as exc:
                self.logger.warning("%s", ChildSitemapFailure(child, exc))
                self.failed_sitemaps.append(child)
                continue
            await self._collect(child, child_document, urls)

    async def _load(self, url: str) -> SitemapDocument:
        self._visited.add(url)
        self.logger.info("Processing sitemap: %s", url)
        content = await self._download(url)
        return parse_sitemap(content)

    async def _download(self, url: str) -> bytes:
        attempts = self.config.retry_times
        reason = ""
        for attempt in range(1, attempts + 1):
            try:
                async with self.session.get(
                    url,
                    headers={"User-Agent": self.config.user_agent},
                    timeout=self._timeout,
                ) as resp:
                    if 200 <= resp.status < 300:
                        return await resp.read()
                    reason = f"HTTP {resp.status}"
            except (ClientError, asyncio.TimeoutError) as exc:
                reason = str(exc) or type(exc).__name__
            self.logger.warning(
                "Failed to download sitemap (attempt %d/%d): %s (%s)", attempt, attempts, url, reason
            )
            if attempt < attempts:
                await asyncio.sleep(self.config.retry_delay)
        raise DownloadFailure(url, attempts, reason)
