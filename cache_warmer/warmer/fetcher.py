# cache_warmer/warmer/fetcher.py
"""
Fetcher module: one warm-up GET per page, no retries, bounded by a timeout.
"""
from __future__ import annotations

import asyncio
import time
from typing import Dict

from aiohttp import ClientError, ClientSession, ClientTimeout

from cache_warmer.config import WarmerConfig
from cache_warmer.warmer.models import ErrorKind, FetchOutcome

_CHUNK_SIZE = 64 * 1024


class Fetcher:
    """Issues a single GET per URL and reports status and duration."""

    def __init__(self, session: ClientSession, config: WarmerConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.timeout)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            self.config.warmup_header: self.config.warmup_header_value,
        }

    async def fetch(self, url: str) -> FetchOutcome:
        """
        Fetch *url* following redirects and drain the body.

        Never raises for network problems: failures are described by the
        returned FetchOutcome.
        """
        start = time.monotonic()
        try:
            async with self.session.get(
                url,
                headers=self.headers,
                allow_redirects=True,
                timeout=self._timeout,
            ) as resp:
                # the cache only stores a complete object
                async for _ in resp.content.iter_chunked(_CHUNK_SIZE):
                    pass
                status = resp.status
        except asyncio.TimeoutError:
            return FetchOutcome(
                url=url,
                status=None,
                duration=time.monotonic() - start,
                error_kind=ErrorKind.TRANSPORT_ERROR,
                error=f"timeout after {self.config.timeout:g}s",
            )
        except (ClientError, ValueError) as exc:
            # ValueError: URL rejected before connecting (IDNA, yarl)
            return FetchOutcome(
                url=url,
                status=None,
                duration=time.monotonic() - start,
                error_kind=ErrorKind.TRANSPORT_ERROR,
                error=str(exc) or type(exc).__name__,
            )

        duration = time.monotonic() - start
        if status != 200:
            return FetchOutcome(url, status, duration, ErrorKind.NON_SUCCESS_STATUS)
        return FetchOutcome(url, status, duration)
