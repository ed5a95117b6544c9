# File: sitemap_scout/engine.py
"""sitemap_scout.engine: оркестрация поиска sitemap, обхода дерева и прокси одной страницы."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from aiohttp import ClientSession

from sitemap_scout.aggregator import SitemapReport, aggregate_results
from sitemap_scout.config import DiscoveryConfig
from sitemap_scout.crawler.crawler import SitemapCrawler
from sitemap_scout.crawler.escalation import EscalationResolver
from sitemap_scout.crawler.fetcher import Fetcher, open_session, text_of
from sitemap_scout.crawler.models import ContentResponse
from sitemap_scout.crawler.throttle import HostThrottleRegistry, get_registry
from sitemap_scout.logger import logger
from sitemap_scout.parser.robots_parser import extract_sitemaps
from sitemap_scout.utils import ensure_scheme, normalize_origin

__all__ = ["start_scan", "fetch_content", "discover_seeds", "expand_site"]

PLAIN_TEXT = "text/plain; charset=utf-8"
_TEXTUAL_MARKERS = ("xml", "html", "text", "json")


@asynccontextmanager
async def _session_scope(
    config: DiscoveryConfig, session: Optional[ClientSession]
) -> AsyncIterator[ClientSession]:
    if session is not None:
        yield session
        return
    own = open_session(config)
    try:
        yield own
    finally:
        await own.close()


def _throttle(config: DiscoveryConfig, throttle: Optional[HostThrottleRegistry]) -> HostThrottleRegistry:
    if throttle is not None:
        return throttle
    return get_registry(config.min_host_interval, config.throttle_max_hosts)


async def discover_seeds(
    fetcher: Fetcher,
    resolver: EscalationResolver,
    origin: str,
    config: DiscoveryConfig,
) -> List[str]:
    """Sitemap-адреса из robots.txt; пустой список, если robots.txt недоступен или их нет."""
    robots_url = f"{origin}/robots.txt"
    if config.robots_variants:
        outcome = await resolver.fetch_first(
            fetcher,
            robots_url,
            prefer=[robots_url],
            max_attempts=config.robots_attempts,
            timeout=config.robots_timeout,
        )
    else:
        outcome = await fetcher.fetch(
            robots_url, max_attempts=config.robots_attempts, timeout=config.robots_timeout
        )
    if not outcome.ok:
        logger.info("robots.txt недоступен (%s): %s", robots_url, outcome.error)
        return []
    seeds = extract_sitemaps(text_of(outcome))
    logger.info("robots.txt объявляет %d sitemap", len(seeds))
    return seeds


async def expand_site(
    fetcher: Fetcher,
    config: DiscoveryConfig,
    origin: str,
    limit: int,
    fast: bool,
) -> SitemapReport:
    """robots.txt → обход объявленных sitemap; иначе перебор стандартных путей до первого разборчивого."""
    crawler = SitemapCrawler(fetcher, config)
    resolver = EscalationResolver()

    seeds = await discover_seeds(fetcher, resolver, origin, config)
    if seeds:
        result = await crawler.expand(seeds, limit, fast)
        return aggregate_results(origin, limit, [result], seeds)

    for path in config.fallback_paths:
        candidate = origin + path
        result = await crawler.expand([candidate], limit, fast)
        if result.documents:
            logger.info("Найден sitemap по стандартному пути: %s", candidate)
            return aggregate_results(origin, limit, [result], [candidate])
    logger.warning("Sitemap для %s не найден", origin)
    return SitemapReport(origin=origin, limit=limit)


async def start_scan(
    cfg: DiscoveryConfig,
    target: str,
    limit: Any = None,
    fast: Optional[bool] = None,
    *,
    session: Optional[ClientSession] = None,
    throttle: Optional[HostThrottleRegistry] = None,
) -> SitemapReport:
    """
    Находит все страницы сайта *target* через его дерево sitemap.

    Parameters
    ----------
    cfg : DiscoveryConfig
        Конфигурация загрузчика.
    target : str
        Домен или абсолютный URL.
    limit : Any
        Запрошенный лимит; приводится через ``cfg.clamp_limit``.
    fast : bool, optional
        Строгий режим; по умолчанию ``cfg.fast``.

    Returns
    -------
    SitemapReport
        Отчёт в формате ``{ok, origin, count, limit, urls}``.
    """
    origin = normalize_origin(target)
    limit = cfg.clamp_limit(limit)
    fast = cfg.fast if fast is None else fast
    async with _session_scope(cfg, session) as sess:
        fetcher = Fetcher(sess, cfg, _throttle(cfg, throttle))
        report = await expand_site(fetcher, cfg, origin, limit, fast)
    logger.info("%s: %d URL (лимит %d)", origin, report.count, limit)
    return report


def _response_content_type(raw: str) -> str:
    lowered = raw.lower()
    if raw and any(marker in lowered for marker in _TEXTUAL_MARKERS):
        return raw
    return PLAIN_TEXT


async def fetch_content(
    cfg: DiscoveryConfig,
    url: str,
    *,
    session: Optional[ClientSession] = None,
    throttle: Optional[HostThrottleRegistry] = None,
) -> ContentResponse:
    """Загружает одну страницу: сам URL, варианты протокола/www, затем прокси-рендерер.

    При полном провале возвращает 502 с текстом последней ошибки.
    """
    target = ensure_scheme(url)
    resolver = EscalationResolver(cfg.render_proxy)
    async with _session_scope(cfg, session) as sess:
        fetcher = Fetcher(sess, cfg, _throttle(cfg, throttle))
        outcome = await resolver.fetch_first(fetcher, target, include_proxy=True, prefer=[target])

    if not outcome.ok:
        return ContentResponse(status=502, content_type=PLAIN_TEXT, body=f"Proxy error: {outcome.error}")
    return ContentResponse(
        status=outcome.status or 200,
        content_type=_response_content_type(outcome.header("content-type")),
        body=text_of(outcome),
        source_url=outcome.final_url or outcome.url,
    )
