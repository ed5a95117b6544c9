# sitemap_scout/crawler/models.py
"""
Data models for the SitemapScout fetcher and crawl orchestrator.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, List, Optional, Set


@dataclass(frozen=True, slots=True)
class FetchRequest:
    """One logical GET: target URL, attempt count and per-attempt timeout (seconds)."""

    url: str
    max_attempts: int = 3
    timeout: float = 12.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")


@dataclass(slots=True)
class FetchOutcome:
    """Result of :meth:`Fetcher.fetch`.

    ``ok`` is True only for a 2xx response. On terminal failure ``error``
    holds the last error seen; ``status``/``headers``/``body`` keep the last
    upstream response, if any attempt got that far.
    """

    url: str
    status: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    error: Optional[str] = None
    final_url: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is not None and 200 <= self.status < 300

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)


class SitemapKind(str, Enum):
    INDEX = "index"
    URLSET = "urlset"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class SitemapDocument:
    kind: SitemapKind
    entries: List[str] = field(default_factory=list)

    @property
    def parsed(self) -> bool:
        return self.kind is not SitemapKind.UNKNOWN


@dataclass(slots=True)
class CrawlState:
    """Mutable state of one ``expand`` call; never shared between crawls."""

    limit: int
    visited: Set[str] = field(default_factory=set)
    frontier: Deque[str] = field(default_factory=deque)
    queued: Set[str] = field(default_factory=set)
    collected: List[str] = field(default_factory=list)
    seen_pages: Set[str] = field(default_factory=set)
    documents: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def full(self) -> bool:
        return len(self.collected) >= self.limit

    def enqueue(self, url: str) -> bool:
        """Put *url* at the back of the frontier unless already visited or queued."""
        if url in self.visited or url in self.queued:
            return False
        self.frontier.append(url)
        self.queued.add(url)
        return True

    def collect(self, url: str) -> bool:
        if self.full or url in self.seen_pages:
            return False
        self.seen_pages.add(url)
        self.collected.append(url)
        return True


@dataclass(slots=True)
class CrawlResult:
    urls: List[str]
    visited: int = 0
    documents: int = 0
    failed: List[str] = field(default_factory=list)

    @classmethod
    def from_state(cls, state: CrawlState) -> CrawlResult:
        return cls(
            urls=list(state.collected),
            visited=len(state.visited),
            documents=state.documents,
            failed=list(state.failed),
        )


@dataclass(slots=True)
class ContentResponse:
    """What the single-page proxy hands back to its caller."""

    status: int
    content_type: str
    body: str
    source_url: Optional[str] = None
