# sitemap_scout/crawler/escalation.py
"""
URL escalation: ordered fallback candidates for one logical target.

Each strategy is a plain function ``url -> candidate URL | None``. Direct
strategies try protocol/www combinations; proxy strategies hand the page to
a public read-only rendering proxy and are only used for single-page
content retrieval, never for sitemap XML.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from sitemap_scout.crawler.fetcher import Fetcher
from sitemap_scout.crawler.models import FetchOutcome
from sitemap_scout.logger import logger
from sitemap_scout.utils import remove_duplicates, split_target, strip_scheme

Strategy = Callable[[str], Optional[str]]


def direct_variant(scheme: str, www: bool) -> Strategy:
    def build(url: str) -> Optional[str]:
        host, path = split_target(url)
        if not host:
            return None
        prefix = "www." if www else ""
        return f"{scheme}://{prefix}{host}{path}"

    build.__name__ = f"{scheme}_{'www' if www else 'bare'}"
    return build


def proxy_variant(proxy_base: str, scheme: str) -> Strategy:
    base = proxy_base if proxy_base.endswith("/") else proxy_base + "/"

    def build(url: str) -> Optional[str]:
        rest = strip_scheme(url)
        if not rest:
            return None
        return f"{base}{scheme}://{rest}"

    build.__name__ = f"proxy_{scheme}"
    return build


DIRECT_STRATEGIES: Sequence[Strategy] = (
    direct_variant("https", www=False),
    direct_variant("https", www=True),
    direct_variant("http", www=False),
    direct_variant("http", www=True),
)


class EscalationResolver:
    """Turns one target into an ordered candidate list and tries it until one succeeds."""

    def __init__(
        self,
        proxy_base: Optional[str] = None,
        direct: Sequence[Strategy] = DIRECT_STRATEGIES,
    ) -> None:
        self.direct: List[Strategy] = list(direct)
        self.proxy: List[Strategy] = []
        if proxy_base:
            self.proxy = [proxy_variant(proxy_base, "http"), proxy_variant(proxy_base, "https")]

    def strategies(self, include_proxy: bool = False) -> List[Strategy]:
        return self.direct + (self.proxy if include_proxy else [])

    def resolve(self, url: str, include_proxy: bool = False) -> List[str]:
        """Candidate URLs in priority order, without duplicates."""
        candidates: List[str] = []
        for strategy in self.strategies(include_proxy):
            try:
                candidate = strategy(url)
            except ValueError as exc:
                logger.debug("Strategy %s skipped for %s: %s", getattr(strategy, "__name__", strategy), url, exc)
                continue
            if candidate:
                candidates.append(candidate)
        return remove_duplicates(candidates)

    async def fetch_first(
        self,
        fetcher: Fetcher,
        url: str,
        *,
        include_proxy: bool = False,
        prefer: Sequence[str] = (),
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> FetchOutcome:
        """Fetch candidates in order; return the first 2xx outcome, else the last failure.

        ``prefer`` URLs are tried before the resolver's own candidates.
        """
        candidates = remove_duplicates([*prefer, *self.resolve(url, include_proxy)])
        outcome = FetchOutcome(url=url, error="no candidate URLs")
        for candidate in candidates:
            outcome = await fetcher.fetch(candidate, max_attempts=max_attempts, timeout=timeout)
            if outcome.ok:
                if candidate != url:
                    logger.debug("Escalation for %s succeeded via %s", url, candidate)
                return outcome
            logger.debug("Candidate %s failed: %s", candidate, outcome.error)
        logger.warning("All %d candidates failed for %s: %s", len(candidates), url, outcome.error)
        return outcome


__all__ = ["EscalationResolver", "Strategy", "DIRECT_STRATEGIES", "direct_variant", "proxy_variant"]
