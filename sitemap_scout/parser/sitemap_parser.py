# File: sitemap_scout/parser/sitemap_parser.py
"""sitemap_scout.parser.sitemap_parser: классификация sitemap-документа и извлечение <loc>.

Это сознательно нестрогий сканер на регулярных выражениях, а не валидирующий
XML-парсер: реальные sitemap часто нарушают XML, поэтому битый документ даёт
частичный или пустой результат, но не исключение.
"""

from __future__ import annotations

import re
from html import unescape
from typing import List

from sitemap_scout.crawler.models import SitemapDocument, SitemapKind

_INDEX_RE = re.compile(r"<\s*sitemapindex[\s>]", re.IGNORECASE)
_URLSET_RE = re.compile(r"<\s*urlset[\s>]", re.IGNORECASE)
# границы блоков <url>; <urlset> и <image:loc> не совпадают
_URL_OPEN_RE = re.compile(r"<\s*url[\s>]", re.IGNORECASE)
_URL_CLOSE_RE = re.compile(r"<\s*/\s*url\s*>", re.IGNORECASE)
_LOC_RE = re.compile(r"<\s*loc\s*>\s*([^<\s]+)\s*<\s*/\s*loc\s*>", re.IGNORECASE)
_SKIP_EXT_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|avif|pdf)(\?.*)?$", re.IGNORECASE)


def _url_locs(text: str) -> List[str]:
    """Первый <loc> каждого блока <url>, за один линейный проход.

    Блок кончается на </url> или на следующем <url>, если закрывающий тег потерян.
    """
    opens = list(_URL_OPEN_RE.finditer(text))
    locs: List[str] = []
    for i, opening in enumerate(opens):
        start = opening.end()
        end = opens[i + 1].start() if i + 1 < len(opens) else len(text)
        close = _URL_CLOSE_RE.search(text, start, end)
        if close is not None:
            end = close.start()
        match = _LOC_RE.search(text, start, end)
        if match:
            locs.append(match.group(1))
    return locs


def is_page_url(url: str) -> bool:
    """False для ссылок на картинки и PDF."""
    return not _SKIP_EXT_RE.search(url)


def classify(text: str) -> SitemapKind:
    """Index, если есть <sitemapindex>; UrlSet, если есть <urlset>; иначе Unknown."""
    if _INDEX_RE.search(text):
        return SitemapKind.INDEX
    if _URLSET_RE.search(text):
        return SitemapKind.URLSET
    return SitemapKind.UNKNOWN


def parse_sitemap(text: str) -> SitemapDocument:
    """Разбирает текст sitemap и возвращает SitemapDocument.

    Args:
        text: уже распакованное содержимое sitemap.

    Returns:
        Для urlset — первый <loc> каждого блока <url>; для индекса — все <loc>.
        Ссылки на изображения и PDF отбрасываются.

    Пример:
    ```python
    from sitemap_scout.parser.sitemap_parser import parse_sitemap

    doc = parse_sitemap(xml_text)
    print(doc.kind, len(doc.entries))
    ```
    """
    if not text:
        return SitemapDocument(SitemapKind.UNKNOWN)

    kind = classify(text)
    if kind is SitemapKind.URLSET:
        raw: List[str] = _url_locs(text)
    elif kind is SitemapKind.INDEX:
        raw = _LOC_RE.findall(text)
    else:
        return SitemapDocument(SitemapKind.UNKNOWN)

    entries = [unescape(loc) for loc in raw]
    return SitemapDocument(kind, [loc for loc in entries if is_page_url(loc)])


__all__ = ["parse_sitemap", "classify", "is_page_url"]
