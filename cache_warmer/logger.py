# === FILE: cache_warmer/logger.py ===
"""Logging for **cache_warmer** runs.

Every step of a run is one line under the ``CacheWarmer`` logger:

* ``Processing sitemap: <url>`` and the per-sitemap URL counts from the
  resolver (``CacheWarmer.resolver``), with a warning per retry and per
  skipped child sitemap;
* ``SUCCESS: <url> (0.123s)`` or ``FAILED: <url> (...)`` for each page, and
  ``Progress: N/M URLs processed`` every ``progress_every`` launches, from
  ``CacheWarmer.dispatcher``;
* the closing summary (processed / successful / failed) and the total run time.

Lines go to stdout; ``--log-file`` adds a size-rotated copy on disk.
Child loggers come from :func:`get_logger`, the CLI calls :func:`init_logging`.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

# Format shared by console and file handlers
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
LOGGER_NAME: Final[str] = "CacheWarmer"

_LevelT = Union[int, str]


def _formatter(fmt: str) -> logging.Formatter:
    return logging.Formatter(fmt, datefmt=DATE_FORMAT)


def _stdout_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(file),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(_formatter(fmt))
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the project logger or one of its children (``CacheWarmer.<name>``)."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Set up the ``CacheWarmer`` logger for a warming run.

    Parameters
    ----------
    level
        ``"DEBUG"`` also shows sitemaps skipped as already visited; ``"WARNING"`` keeps
        only retries, skipped sitemaps and failed pages.
    log_file
        Warming log on disk (rotated at 5 MiB, 3 backups). *None* → stdout only.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Close the handlers of a previous run before attaching new ones.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_stdout_handler(log_format))

    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point used by the CLI: replace handlers and apply the options."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


# console-only INFO until the CLI applies --log-level / --log-file
logger: logging.Logger = configure()

__all__ = ["logger", "configure", "init_logging", "get_logger", "LOGGER_NAME"]
