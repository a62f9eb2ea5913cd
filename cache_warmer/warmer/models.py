# cache_warmer/warmer/models.py
"""
Data models for the cache warmer.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional


class ErrorKind(str, enum.Enum):
    """Why a single page request did not count as a success."""

    TRANSPORT_ERROR = "transport_error"
    NON_SUCCESS_STATUS = "non_success_status"


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of one warm-up request: status, wall-clock duration and failure kind."""

    url: str
    status: Optional[int]
    duration: float
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.status == 200


@dataclass(slots=True)
class SitemapDocument:
    """Parsed sitemap: either an index (locations are sitemaps) or a leaf (locations are pages)."""

    is_index: bool
    locations: List[str] = field(default_factory=list)
