# File: sitemap_scout/parser/robots_parser.py
"""sitemap_scout.parser.robots_parser: извлечение директив Sitemap из robots.txt."""

from __future__ import annotations

from typing import List, Tuple

from sitemap_scout.utils import remove_duplicates


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Очищает текст от комментариев и разделяет на (директива, значение)."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("#") or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines


def extract_sitemaps(text: str) -> List[str]:
    """Возвращает URL из строк ``Sitemap: <url>`` в порядке следования в файле.

    Директива регистронезависима; берётся первое слово значения, повторы убираются.

    Пример:
    ```python
    >>> extract_sitemaps("User-agent: *\\nSITEMAP: https://example.com/s.xml")
    ['https://example.com/s.xml']
    ```
    """
    found: List[str] = []
    for directive, value in _prepare_lines(text or ""):
        if directive != "sitemap" or not value:
            continue
        found.append(value.split()[0])
    return remove_duplicates(found)


__all__ = ["extract_sitemaps"]
