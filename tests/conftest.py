# File: tests/conftest.py
from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web

from cache_warmer.config import WarmerConfig
from cache_warmer.logger import LOGGER_NAME, configure

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


class SitemapXML:
    """Builders for sitemap documents used by the test servers."""

    @staticmethod
    def urlset(urls: Iterable[str], namespace: bool = True) -> str:
        xmlns = f' xmlns="{SITEMAP_NS}"' if namespace else ""
        body = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
        return f'<?xml version="1.0" encoding="UTF-8"?><urlset{xmlns}>{body}</urlset>'

    @staticmethod
    def index(sitemaps: Iterable[str], namespace: bool = True) -> str:
        xmlns = f' xmlns="{SITEMAP_NS}"' if namespace else ""
        body = "".join(f"<sitemap><loc>{u}</loc></sitemap>" for u in sitemaps)
        return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex{xmlns}>{body}</sitemapindex>'


@pytest.fixture()
def sitemap_xml() -> type[SitemapXML]:
    return SitemapXML


@pytest.fixture(autouse=True)
def project_logger(monkeypatch):
    """
    Fresh console handler for every test, propagating to the root logger
    so that caplog sees the records.
    """
    lg = configure(level="DEBUG")
    monkeypatch.setattr(lg, "propagate", True)
    yield lg
    configure(level="INFO")


@pytest.fixture()
def make_config() -> Callable[..., WarmerConfig]:
    """
    Factory for a WarmerConfig without the production pauses.
    """

    def _make(sitemap_url: str = "http://example.com/sitemap.xml", **overrides: Any) -> WarmerConfig:
        data: dict[str, Any] = {
            "sitemap_url": sitemap_url,
            "requests_per_second": 1000.0,
            "max_concurrent": 4,
            "user_agent": "TestAgent/1.0",
            "timeout": 2.0,
            "sitemap_timeout": 2.0,
            "retry_times": 3,
            "retry_delay": 0.0,
            "sitemap_pause": 0.0,
        }
        data.update(overrides)
        return WarmerConfig(**data)

    return _make


@pytest_asyncio.fixture
async def serve_app(unused_tcp_port: int) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start an aiohttp *app* on a free port and return its base URL; cleanup on teardown."""
    runners: list[web.AppRunner] = []

    async def _start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", unused_tcp_port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{unused_tcp_port}"

    yield _start

    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def caplog_info(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    return caplog
