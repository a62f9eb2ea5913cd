# cache_warmer/__init__.py
"""
cache_warmer package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

# Expose CLI entry point (cache_warmer.cli stays the module)
from cache_warmer.cli import cli as main_cli  # noqa: E402
