# File: cache_warmer/errors.py
"""cache_warmer.errors: Иерархия ошибок прогрева кеша.

Фатальные ошибки (DownloadFailure, EmptyResultFailure) прерывают запуск,
ChildSitemapFailure только логируется, запуск продолжается.
"""

from __future__ import annotations


class WarmerError(Exception):
    """Базовая ошибка cache_warmer."""


class DownloadFailure(WarmerError):
    """Sitemap не удалось загрузить после всех попыток."""

    def __init__(self, url: str, attempts: int, reason: str) -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"Failed to download sitemap after {attempts} attempts: {url} ({reason})"
        )


class ChildSitemapFailure(WarmerError):
    """Дочерний sitemap из индекса недоступен; пропускается."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Skipping child sitemap {url}: {cause}")


class EmptyResultFailure(WarmerError):
    """В sitemap не найдено ни одного URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No URLs found in sitemap {url}")


__all__ = ["WarmerError", "DownloadFailure", "ChildSitemapFailure", "EmptyResultFailure"]
