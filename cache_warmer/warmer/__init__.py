# File: cache_warmer/warmer/__init__.py
"""cache_warmer.warmer: Разрешение sitemap, запросы к страницам и диспетчеризация."""
