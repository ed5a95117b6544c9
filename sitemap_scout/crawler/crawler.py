# === FILE: sitemap_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, List, Optional

from sitemap_scout.config import DiscoveryConfig
from sitemap_scout.crawler.fetcher import Fetcher, text_of
from sitemap_scout.crawler.models import CrawlResult, CrawlState, SitemapDocument, SitemapKind
from sitemap_scout.logger import LOGGER_NAME
from sitemap_scout.parser.sitemap_parser import parse_sitemap

__all__ = ("SitemapCrawler",)


class SitemapCrawler:
    """Обход дерева sitemap в ширину волнами ограниченной ширины.

    Индексы добавляют дочерние sitemap в конец очереди, urlset пополняет
    список страниц. Все изменения состояния выполняются между волнами или
    по порядку отправки внутри волны, поэтому результат детерминирован.
    """

    def __init__(self, fetcher: Fetcher, config: DiscoveryConfig) -> None:
        self.fetcher = fetcher
        self.config = config
        self.concurrency: int = config.concurrency
        self.logger = logging.getLogger(LOGGER_NAME)

    async def expand(
        self,
        seeds: Iterable[str],
        limit: int,
        fast: Optional[bool] = None,
    ) -> CrawlResult:
        fast = self.config.fast if fast is None else fast
        state = CrawlState(limit=max(0, limit))
        for seed in seeds:
            state.enqueue(seed)

        self.logger.info("Старт обхода sitemap: %d seed(s), лимит %d", len(state.frontier), state.limit)
        start = time.monotonic()
        waves = 0
        while state.frontier and not state.full:
            wave = self._next_wave(state)
            if not wave:
                break
            waves += 1
            await self._run_wave(state, wave, fast)

        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d URL из %d sitemap за %.2f с (%d волн)",
            len(state.collected), len(state.visited), duration, waves,
        )
        if state.failed:
            self.logger.info("Недоступно sitemap: %d", len(state.failed))
        return CrawlResult.from_state(state)

    def _next_wave(self, state: CrawlState) -> List[str]:
        wave: List[str] = []
        while state.frontier and len(wave) < self.concurrency:
            url = state.frontier.popleft()
            state.queued.discard(url)
            if url in state.visited:
                continue
            state.visited.add(url)
            wave.append(url)
        return wave

    async def _run_wave(self, state: CrawlState, wave: List[str], fast: bool) -> None:
        tasks = [asyncio.create_task(self._load(url)) for url in wave]
        try:
            if fast:
                # absorb in dispatch order, stop as soon as the limit is hit
                for url, task in zip(wave, tasks):
                    self._absorb(state, url, await task)
                    if state.full:
                        break
            else:
                documents = await asyncio.gather(*tasks)
                for url, document in zip(wave, documents):
                    self._absorb(state, url, document)
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                self.logger.debug("Отменено %d незавершённых загрузок", len(pending))
                await asyncio.gather(*pending, return_exceptions=True)

    async def _load(self, url: str) -> Optional[SitemapDocument]:
        outcome = await self.fetcher.fetch(url)
        if not outcome.ok:
            self.logger.warning("Failed %s: %s", url, outcome.error)
            return None
        return parse_sitemap(text_of(outcome))

    def _absorb(self, state: CrawlState, url: str, document: Optional[SitemapDocument]) -> None:
        if document is None:
            state.failed.append(url)
            return
        if document.kind is SitemapKind.INDEX:
            state.documents += 1
            queued = sum(1 for child in document.entries if state.enqueue(child))
            self.logger.debug("Index %s: %d дочерних, %d новых", url, len(document.entries), queued)
        elif document.kind is SitemapKind.URLSET:
            state.documents += 1
            for loc in document.entries:
                if state.full:
                    break
                state.collect(loc)
            self.logger.debug("Urlset %s: %d URL", url, len(document.entries))
        else:
            self.logger.debug("Неизвестный формат документа: %s", url)
