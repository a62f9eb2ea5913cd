# File: cache_warmer/parser/__init__.py
"""cache_warmer.parser: Разбор sitemap.xml."""

from .sitemap_parser import parse_sitemap

__all__ = ["parse_sitemap"]
