# setup.py
from setuptools import setup, find_packages

setup(
    name="cache_warmer",
    version="0.1.0",
    description="Асинхронный прогрев кеша (Varnish, nginx, CDN) по sitemap.xml",
    packages=find_packages(include=["cache_warmer", "cache_warmer.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "click>=8.1",
        "lxml>=4.9",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "cache-warmer=cache_warmer.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
