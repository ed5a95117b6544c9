# File: sitemap_scout/aggregator.py
"""sitemap_scout.aggregator: итоговый отчёт обхода sitemap."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from sitemap_scout.crawler.models import CrawlResult


@dataclass(slots=True)
class SitemapReport:
    """Результат поиска страниц сайта: origin, лимит и найденные URL в порядке обхода."""

    origin: str
    limit: int
    urls: List[str] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)
    ok: bool = True

    @property
    def count(self) -> int:
        return len(self.urls)

    def to_dict(self) -> Dict[str, Any]:
        """Формат ответа API: ``{ok, origin, count, limit, urls}``."""
        return {
            "ok": self.ok,
            "origin": self.origin,
            "count": self.count,
            "limit": self.limit,
            "urls": list(self.urls),
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def aggregate_results(
    origin: str,
    limit: int,
    results: List[CrawlResult],
    sitemaps: List[str] | None = None,
) -> SitemapReport:
    """Склеивает результаты нескольких обходов, сохраняя порядок и не превышая лимит."""
    urls: List[str] = []
    seen: set[str] = set()
    for result in results:
        for url in result.urls:
            if len(urls) >= limit:
                break
            if url not in seen:
                seen.add(url)
                urls.append(url)
    return SitemapReport(origin=origin, limit=limit, urls=urls, sitemaps=list(sitemaps or []))


__all__ = ["SitemapReport", "aggregate_results"]
